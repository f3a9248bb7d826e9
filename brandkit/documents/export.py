"""External document export interface.

Only the reference and timestamp of an export are recorded here; the
mechanics of talking to an external document service live behind
DocumentExporter.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ExportReference:
    """Where an exported copy lives."""

    external_id: str
    external_url: str


class DocumentExporter(Protocol):
    """Pushes rendered markdown to an external document service."""

    async def export(self, title: str, markdown: str) -> ExportReference:
        """Create the external copy.

        Raises:
            TransportError: If the external service rejects or drops the request
        """
        ...
