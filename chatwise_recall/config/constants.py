import os

MCP_PROTOCOL_VERSION = "2025-06-18"
JSONRPC_VERSION = "2.0"

# Server info and capabilities.
SERVER_CAPABILITIES = {"tools": {"listChanged": True}, "logging": {}}
SERVER_NAME = "chatwise-mcp"
SERVER_DESCRIPTION = """
chatwise-recall is an MCP Server for searching, viewing and merging conversations stored in the local ChatWise database.
"""

# Environment variables
CHATWISE_RECALL_HOME = os.getenv("CHATWISE_RECALL_HOME", "")
ENV_DB_PATH = "CHATWISE_DB_PATH"
ENV_DB_PATH_FALLBACK = "DB_PATH"
ENV_CURRENT_CHAT_ID = "CHATWISE_CURRENT_CHAT_ID"
ENV_MCP_SERVER_NAME = "MCP_SERVER_NAME"

# Default ChatWise database location, relative to the platform config dir
CHATWISE_APP_DIR = "app.chatwise"
CHATWISE_DB_FILENAME = "app.db"

# Search configuration file (YAML), looked up in CHATWISE_RECALL_HOME/config
SEARCH_CONFIG_FILENAME = "chatwise-search.yaml"

# Timestamps above this are milliseconds, at or below are seconds
TIMESTAMP_MILLISECOND_THRESHOLD = 1_000_000_000_000

# Upper bound used by the "all" time window
FAR_FUTURE_MS = 9_999_999_999_999
MS_PER_DAY = 24 * 60 * 60 * 1000

TIME_WINDOW_DAYS = {"7d": 7, "30d": 30, "60d": 60, "90d": 90}
TIME_WINDOW_ALL = "all"

# Query term handling
MAX_TOKENIZED_TERMS = 8  # Tokens kept from a free-text query
MAX_QUERY_TERMS = 12  # Terms kept from an explicit term list
RECENT_WILDCARDS = ("*", "recent", "最近")

SOURCE_TITLE = "title"
SOURCE_CONTENT = "content"
SOURCE_TOOL = "tool"

MATCH_ANY = "any"
MATCH_ALL = "all"

PRECISION_BASIC = "basic"
PRECISION_FUZZY = "fuzzy"

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"

# search_conversations defaults and hard caps
DEFAULT_LIMIT_CHATS = 10
MAX_LIMIT_CHATS = 100
DEFAULT_LIMIT_SNIPPETS = 3
MAX_LIMIT_SNIPPETS = 10
DEFAULT_SNIPPET_WINDOW = 64
MAX_SNIPPET_WINDOW = 400
DEFAULT_RECENT_USER_SECS = 60
MAX_RECENT_USER_SECS = 600
DEFAULT_INCLUDE_TOOLS_IN_SEARCH = True
DEFAULT_EXCLUDE_CURRENT_CHAT = True
SNIPPET_ELLIPSIS = "…"

# Current chat detection looks this far back for our own tool call
SELF_INVOCATION_WINDOW_MS = 15 * 60 * 1000
SEARCH_TOOL_NAME = "search_conversations"
GATHER_TOOL_NAME = "gather_chats"

# Confidence heuristic defaults (overridable from the YAML search config)
CONFIDENCE_BASE = 0.3
CONFIDENCE_HITS_WEIGHT = 0.4
CONFIDENCE_HITS_SATURATION = 5
CONFIDENCE_BREADTH_WEIGHT = 0.2
CONFIDENCE_BREADTH_SATURATION = 3
RECENCY_CONFIDENCE_BASE = 0.4
RECENCY_CONFIDENCE_BREADTH_WEIGHT = 0.4
CONFIDENCE_STOP_THRESHOLD = 0.75
STOP_CANDIDATE_COUNT = 2
MAX_SUGGESTED_CHATS = 3

# gather_chats / merge
DEFAULT_INCLUDE_TOOLS_IN_GATHER = True
MIN_MERGE_CONVERSATIONS = 2
MESSAGE_ID_FRAGMENT_LENGTH = 8
UNTITLED_CONVERSATION = "<untitled>"

# delete_conversation
DELETE_CHUNK_SIZE = 400  # Stay under SQLite's bound variable limit
