"""
Application Constants

Name, version and CLI texts.
"""


class Application:
    """Application metadata constants."""

    NAME = "foliosync"
    VERSION = "0.1.0"
    DESCRIPTION = "Portfolio CMS collection sync with optimistic caching"


class Logging:
    """Logging configuration constants."""

    DEFAULT_LEVEL = "INFO"
    DEFAULT_FILE_PATH = "logs/foliosync.log"
    MAX_BYTES = 10 * 1024 * 1024  # 10MB
    BACKUP_COUNT = 5


class CLIHelp:
    """CLI help texts."""

    APP_NAME = "foliosync"
    APP_DESCRIPTION = "Manage portfolio collections (skills, projects, ...) from the terminal."
    APP_STYLE = "rich"
    VERSION_TEXT = "foliosync v{version}"

    LIST_HELP = "List a collection, served from cache when fresh."
    CREATE_HELP = "Create a record in a collection."
    UPDATE_HELP = "Update fields of a record."
    DELETE_HELP = "Delete a record."
    CACHE_HELP = "Inspect or clear the local collection cache."
    FIELD_HELP = "Field assignment as key=value (repeatable). Values are parsed as JSON when possible."
    QUERY_HELP = "Case-insensitive search on name or category."
    CATEGORY_HELP = "Only show records of this category ('All' for every category)."
    JSON_HELP = "Output results in JSON format"


class CLIDefaults:
    """CLI default values."""

    VERSION = Application.VERSION

    EXIT_SUCCESS = 0
    EXIT_ERROR = 1
    EXIT_USAGE = 2
    EXIT_INTERRUPTED = 130

    DEFAULT_CATEGORY = "All"


class CLICommands:
    """CLI command names."""

    LIST = "list"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    CACHE = "cache"
    CACHE_INFO = "info"
    CACHE_CLEAR = "clear"


class CLIOptions:
    """CLI option flags."""

    QUERY = "--query"
    QUERY_SHORT = "-q"
    CATEGORY = "--category"
    CATEGORY_SHORT = "-c"
    FIELD = "--field"
    FIELD_SHORT = "-f"
    JSON = "--json"
    LOG_LEVEL = "--log-level"
    VERSION = "--version"
    VERSION_SHORT = "-V"
