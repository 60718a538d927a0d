"""Public interface for the ``cnab_import`` package.

Symbol re-exports only; the API functions live in ``cnab_import.api`` and the
building blocks in their own modules.
"""

from .api import (
    import_cnab_file,
    import_path,
    import_stream,
    init_db,
    store_balances,
    validate_upload,
)
from .cancellation import CancellationToken
from .errors import (
    ArgumentError,
    CnabError,
    ConfigurationError,
    CriticalImportError,
    FormatError,
    ImportCancelledError,
    LengthError,
    LineDecodeError,
    ValidationError,
)
from .importer import CnabImporter
from .ingest.adapters.cnab_fixed_width import decode_file, decode_line, encode_line
from .models import DecodedLine, ImportResult, StoreSummary, TransactionSummary
from .settings import ImportSettings, load_settings
from .transaction_types import TransactionNature, TransactionType
from .value_objects import CPF, CardNumber, Money

__all__ = [
    # API
    "import_cnab_file",
    "import_path",
    "import_stream",
    "init_db",
    "store_balances",
    "validate_upload",
    "CnabImporter",
    "CancellationToken",
    # Decoding
    "decode_file",
    "decode_line",
    "encode_line",
    # Models / types
    "CPF",
    "CardNumber",
    "DecodedLine",
    "ImportResult",
    "ImportSettings",
    "Money",
    "StoreSummary",
    "TransactionNature",
    "TransactionSummary",
    "TransactionType",
    "load_settings",
    # Errors
    "ArgumentError",
    "CnabError",
    "ConfigurationError",
    "CriticalImportError",
    "FormatError",
    "ImportCancelledError",
    "LengthError",
    "LineDecodeError",
    "ValidationError",
]
