"""gigledger: read-model synchronization for an escrowed freelance marketplace.

All authoritative state lives on the project ledger.  gigledger rebuilds an
open-marketplace listing and per-account statistics from it by full scan,
and coordinates create / accept / complete writes so the derived view is
only ever replaced by a fully rebuilt one.
"""

__version__ = "0.1.0"
__description__ = "Ledger read-model and escrow action coordination for freelance projects"

from gigledger.core.read_model import ReadModel, ReadModelBuilder
from gigledger.core.session import Session, open_session

__all__ = ["ReadModel", "ReadModelBuilder", "Session", "open_session", "__version__"]
