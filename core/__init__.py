"""taskmgr core library — state, mutations, progress and reminders.

Public API re-exports for convenient imports:
    from core import StateStore, TaskManager, ReminderScheduler, ...
"""

# Workspace & settings
from core.workspace import (
    STORAGE_KEY,
    workspace_root,
    get_user_timezone,
    now_local,
    config_path,
    hooks_config_path,
    state_path,
    logs_dir,
)
from core.config import Settings, init_config, load_settings

# Models
from core.models import (
    Task,
    Project,
    AppState,
    Progress,
    Notification,
    Submitted,
    Cancelled,
    CANCELLED,
    EditInput,
    parse_deadline,
)

# State store
from core.store import (
    Persistence,
    JsonFilePersistence,
    MemoryPersistence,
    StateStore,
)

# Derived state
from core.progress import compute_progress, ProgressTracker
from core.filters import FILTER_MODES, filter_tasks, next_filter_mode

# Notifications
from core.notify import Notifier, CollectingSink
from core.hooks import HookSink, run_hooks, load_hooks_config

# Mutations
from core.mutations import TaskManager

# Reminders
from core.timers import Timer, AsyncioTimer
from core.reminders import (
    Reminder,
    ReminderScheduler,
    classify_task,
    scan_reminders,
)

# Wiring
from core.app import TaskApp, build_app
