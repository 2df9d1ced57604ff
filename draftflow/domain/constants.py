from pathlib import Path

# Draft storage
DEFAULT_DRAFTS_ROOT = Path(".draftflow/drafts")
DRAFT_FILENAME = "draft.json"
DRAFT_TEMP_SUFFIX = ".json.tmp"
DRAFT_VERSION = "1.0"

# Auto-save
DEFAULT_AUTOSAVE_INTERVAL_SECONDS = 30.0

# Configuration
CONFIG_DIRNAME = ".draftflow"
CONFIG_FILENAME = "config.yml"
