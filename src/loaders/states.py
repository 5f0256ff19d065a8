from __future__ import annotations

from enum import Enum


class BootstrapState(str, Enum):
    """Milestones of one bootstrap run, in the order they are reached."""

    NOT_STARTED = "not_started"
    PRE_HOOK_RUN = "pre_hook_run"
    HOST_LOADED = "host_loaded"
    HOST_SKIPPED = "host_skipped"
    BUNDLE_ACTIVATED = "bundle_activated"
    POST_HOOK_RUN = "post_hook_run"
    ENGINES_DISCOVERED = "engines_discovered"
    INITIALIZERS_RUN = "initializers_run"
    AUTOLOAD_SETUP = "autoload_setup"
    EAGER_LOAD_ATTEMPTED = "eager_load_attempted"
    DONE = "done"


class AutoloadMode(str, Enum):
    """How engine code gets eager loaded."""

    REGISTRY = "registry"
    DIRECTORY = "directory"
