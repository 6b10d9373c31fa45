"""Settings loading, saving and change notification.

Config file location: ~/.config/x-cleaner/settings.toml

Schema:
    [filter]
    mode = "filtering-basic"        # original | filtering-basic | filtering-extended
    hide_short_text = false
    language = "all"                # all | target-language | other-language

    [filter.media]
    show_only_image = false
    show_only_video = false
    show_image_or_video = false

    [filter.engagement]
    min_views = 0                   # 0 = no bound (same for the other five)

    [filter.extended]
    whitelist = ["handle"]
    show_only_verified = false

    [runtime]
    initial_sweep_delay = 0.5
    extraction_delay = 0.3
    notification_delay = 1.0
    advisory_min_items = 20

    [selectors]
    item = 'article[data-testid="tweet"]'
"""

import logging
import tomllib
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

import tomli_w

from .models import ENGAGEMENT_BOUNDS, LanguageFilter, Mode, Settings

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "x-cleaner"
CONFIG_FILE = CONFIG_DIR / "settings.toml"

# Change notifications carry the namespace they apply to; only "sync"
# changes affect the filter.
SYNC_NAMESPACE = "sync"

# Values stored by the browser extension before the modes were renamed
LEGACY_MODES = {
    "clean": Mode.FILTERING_BASIC,
    "refined": Mode.FILTERING_EXTENDED,
}
LEGACY_LANGUAGES = {
    "zh": LanguageFilter.TARGET_LANGUAGE,
    "non-zh": LanguageFilter.OTHER_LANGUAGE,
}

MEDIA_TOGGLES = ("show_only_image", "show_only_video", "show_image_or_video")
BOOL_SETTINGS = ("hide_short_text", *MEDIA_TOGGLES, "show_only_verified")

_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Selectors:
    """CSS selectors for the host page's markup.

    These track X's current web client and may need updating when it
    deploys changes. Override them in the [selectors] table.
    """

    item: str = 'article[data-testid="tweet"]'
    text: str = '[data-testid="tweetText"]'
    photo: str = '[data-testid="tweetPhoto"]'
    video_player: str = '[data-testid="videoPlayer"]'
    video: str = "video"
    action_buttons: str = '[role="group"] [role="button"]'


@dataclass(frozen=True)
class RuntimeConfig:
    initial_sweep_delay: float = 0.5
    extraction_delay: float = 0.3  # lets lazily-loaded media attach
    notification_delay: float = 1.0
    advisory_min_items: int = 20
    selectors: Selectors = field(default_factory=Selectors)


def parse_mode(value: str | Mode) -> Mode:
    if isinstance(value, Mode):
        return value
    value = str(value).strip().lower()
    if value in LEGACY_MODES:
        return LEGACY_MODES[value]
    try:
        return Mode(value)
    except ValueError:
        choices = ", ".join(m.value for m in Mode)
        raise ValueError(f"Invalid mode {value!r} (expected one of: {choices})") from None


def parse_language(value: str | LanguageFilter) -> LanguageFilter:
    if isinstance(value, LanguageFilter):
        return value
    value = str(value).strip().lower()
    if value in LEGACY_LANGUAGES:
        return LEGACY_LANGUAGES[value]
    try:
        return LanguageFilter(value)
    except ValueError:
        choices = ", ".join(f.value for f in LanguageFilter)
        raise ValueError(
            f"Invalid language filter {value!r} (expected one of: {choices})"
        ) from None


def normalize_handle(handle: str) -> str:
    """Normalize an account handle: strip whitespace and '@', lower-case."""
    return handle.strip().lstrip("@").lower()


def _parse_bool(key: str, value: object) -> bool:
    if isinstance(value, bool):
        return value
    word = str(value).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"Invalid boolean for {key}: {value!r}")


def _parse_bound(key: str, value: object) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid number for {key}: {value!r}")
    if value is None or value == "":
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid number for {key}: {value!r}") from None
    if number < 0:
        raise ValueError(f"{key} must be non-negative, got {number}")
    return number


def _parse_whitelist(value: str | Iterable[str]) -> frozenset[str]:
    if isinstance(value, str):
        value = value.split(",")
    return frozenset(h for h in (normalize_handle(v) for v in value) if h)


def coerce_setting(key: str, value: object):
    """Convert a raw (possibly string) value to the type of a Settings field."""
    if key == "mode":
        return parse_mode(value)
    if key == "language_filter":
        return parse_language(value)
    if key in BOOL_SETTINGS:
        return _parse_bool(key, value)
    if key in ENGAGEMENT_BOUNDS:
        return _parse_bound(key, value)
    if key == "whitelist":
        return _parse_whitelist(value)
    raise ValueError(f"Unknown setting: {key}")


SETTING_KEYS = tuple(f.name for f in fields(Settings))


def settings_from_dict(data: dict) -> Settings:
    """Build a Settings snapshot from the parsed TOML document."""
    filter_data = data.get("filter", {})
    media = filter_data.get("media", {})
    engagement = filter_data.get("engagement", {})
    extended = filter_data.get("extended", {})

    values = {
        "mode": parse_mode(filter_data.get("mode", Mode.FILTERING_BASIC)),
        "hide_short_text": _parse_bool(
            "hide_short_text", filter_data.get("hide_short_text", False)
        ),
        "language_filter": parse_language(filter_data.get("language", LanguageFilter.ALL)),
        "whitelist": _parse_whitelist(extended.get("whitelist", [])),
        "show_only_verified": _parse_bool(
            "show_only_verified", extended.get("show_only_verified", False)
        ),
    }
    for key in MEDIA_TOGGLES:
        values[key] = _parse_bool(key, media.get(key, False))
    for key in ENGAGEMENT_BOUNDS:
        values[key] = _parse_bound(key, engagement.get(key, 0))

    return Settings(**values)


def settings_to_dict(settings: Settings) -> dict:
    return {
        "mode": settings.mode.value,
        "hide_short_text": settings.hide_short_text,
        "language": settings.language_filter.value,
        "media": {key: getattr(settings, key) for key in MEDIA_TOGGLES},
        "engagement": {key: getattr(settings, key) for key in ENGAGEMENT_BOUNDS},
        "extended": {
            "whitelist": sorted(settings.whitelist),
            "show_only_verified": settings.show_only_verified,
        },
    }


def runtime_from_dict(data: dict) -> RuntimeConfig:
    runtime = data.get("runtime", {})
    selector_data = data.get("selectors", {})

    known = {f.name for f in fields(Selectors)}
    unknown = set(selector_data) - known
    if unknown:
        raise ValueError(f"Unknown selectors: {', '.join(sorted(unknown))}")

    defaults = RuntimeConfig()
    return RuntimeConfig(
        initial_sweep_delay=float(
            runtime.get("initial_sweep_delay", defaults.initial_sweep_delay)
        ),
        extraction_delay=float(runtime.get("extraction_delay", defaults.extraction_delay)),
        notification_delay=float(
            runtime.get("notification_delay", defaults.notification_delay)
        ),
        advisory_min_items=int(
            runtime.get("advisory_min_items", defaults.advisory_min_items)
        ),
        selectors=Selectors(**selector_data),
    )


def _read_toml(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    with open(config_path, "rb") as f:
        return tomllib.load(f)


def load_settings(config_path: Path = CONFIG_FILE) -> Settings:
    """Load settings; every field missing from the file takes its default."""
    return settings_from_dict(_read_toml(config_path))


def load_runtime(config_path: Path = CONFIG_FILE) -> RuntimeConfig:
    return runtime_from_dict(_read_toml(config_path))


def save_settings(settings: Settings, config_path: Path = CONFIG_FILE) -> None:
    """Write the [filter] table, keeping any other tables already in the file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = _read_toml(config_path)
    data["filter"] = settings_to_dict(settings)

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)


def config_exists(config_path: Path = CONFIG_FILE) -> bool:
    """Check if config file exists."""
    return config_path.exists()


SettingsListener = Callable[[dict, str], None]


class SettingsStore:
    """File-backed key/value settings store with change notifications.

    Listeners are called as ``listener(changes, namespace)`` where
    ``changes`` maps each changed key to its new value.
    """

    def __init__(self, config_path: Path = CONFIG_FILE):
        self.config_path = config_path
        self._listeners: list[SettingsListener] = []

    def snapshot(self) -> Settings:
        return load_settings(self.config_path)

    def subscribe(self, listener: SettingsListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: SettingsListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def update(self, **changes) -> Settings:
        """Persist changed fields and notify listeners of what changed."""
        current = self.snapshot()
        coerced = {key: coerce_setting(key, value) for key, value in changes.items()}
        updated = replace(current, **coerced)
        save_settings(updated, self.config_path)

        changed = {
            key: value
            for key, value in coerced.items()
            if getattr(current, key) != value
        }
        if changed:
            logger.info("Settings changed: %s", ", ".join(sorted(changed)))
            self._notify(changed, SYNC_NAMESPACE)
        return updated

    def reset(self) -> Settings:
        """Restore every field to its default."""
        current = self.snapshot()
        defaults = Settings()
        save_settings(defaults, self.config_path)
        changed = {
            key: getattr(defaults, key)
            for key in SETTING_KEYS
            if getattr(current, key) != getattr(defaults, key)
        }
        if changed:
            self._notify(changed, SYNC_NAMESPACE)
        return defaults

    def _notify(self, changes: dict, namespace: str) -> None:
        for listener in list(self._listeners):
            listener(changes, namespace)


class SettingsContext:
    """Holds the current Settings snapshot.

    ``refresh()`` replaces the reference with a fresh snapshot from the
    store; the snapshot itself is never mutated.
    """

    def __init__(self, store: SettingsStore | None = None, settings: Settings | None = None):
        self._store = store
        if settings is None:
            settings = store.snapshot() if store is not None else Settings()
        self._current = settings

    @property
    def current(self) -> Settings:
        return self._current

    def refresh(self) -> Settings:
        if self._store is not None:
            self._current = self._store.snapshot()
            logger.info("Settings reloaded (mode=%s)", self._current.mode.value)
        return self._current

    def replace(self, settings: Settings) -> None:
        self._current = settings
