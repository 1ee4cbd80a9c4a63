"""
Diff view settings management.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from diffview.core.exceptions import SettingsError
from diffview.core.expansion import GAP_EXPAND_STEP
from diffview.core.models import ViewMode
from diffview.core.render import HIGHLIGHT_LINE_LIMIT


@dataclass
class RenderSettings:
    """Settings for diff rendering."""
    view_mode: ViewMode = ViewMode.UNIFIED
    highlight_line_limit: int = HIGHLIGHT_LINE_LIMIT
    gap_expand_step: int = GAP_EXPAND_STEP
    context_lines: int = 3


@dataclass
class HighlightSettings:
    """Settings for syntax highlighting."""
    enabled: bool = True
    light_style: str = "default"
    dark_style: str = "github-dark"
    cache_size: int = 200
    max_workers: Optional[int] = None  # None keeps Qt's default


@dataclass
class DiffViewSettings:
    """Settings container."""
    render: RenderSettings = field(default_factory=RenderSettings)
    highlight: HighlightSettings = field(default_factory=HighlightSettings)


SettingsObserver = Callable[[DiffViewSettings], None]


class SettingsManager:
    """Manager for loading/saving diff view settings."""

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = Path(settings_path) if settings_path else self._get_default_path()
        self._settings: Optional[DiffViewSettings] = None
        self._observers: list[SettingsObserver] = []

    @staticmethod
    def _get_default_path() -> Path:
        """Get the default settings file path."""
        if os.name == 'nt':
            # Windows
            app_data = os.environ.get('APPDATA', os.path.expanduser('~'))
            return Path(app_data) / 'DiffView' / 'settings.json'
        else:
            # Linux/Mac
            config_home = os.environ.get('XDG_CONFIG_HOME',
                                         os.path.expanduser('~/.config'))
            return Path(config_home) / 'diffview' / 'settings.json'

    @property
    def settings(self) -> DiffViewSettings:
        """Get current settings, loading from disk if needed."""
        if self._settings is None:
            self._settings = self.load()
        return self._settings

    def load(self) -> DiffViewSettings:
        """Load settings from disk, falling back to defaults."""
        if not self.settings_path.exists():
            return DiffViewSettings()

        try:
            with open(self.settings_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("settings root must be an object")
            return self._from_dict(data)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logging.warning(f"SettingsManager - could not read {self.settings_path}: {e}")
            return DiffViewSettings()

    def save(self, settings: Optional[DiffViewSettings] = None) -> None:
        """
        Save settings to disk.

        Raises:
            SettingsError: If the file cannot be written
        """
        settings = settings or self._settings
        if settings is None:
            return

        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.settings_path, 'w', encoding='utf-8') as f:
                json.dump(self._to_dict(settings), f, indent=2)
        except OSError as e:
            raise SettingsError(f"Cannot write settings to {self.settings_path}: {e}") from e

        self._settings = settings
        self._notify_observers()

    def reset(self) -> DiffViewSettings:
        """Reset to default settings."""
        self._settings = DiffViewSettings()
        self.save()
        return self._settings

    def add_observer(self, callback: SettingsObserver) -> None:
        """Add a callback to be notified of settings changes."""
        self._observers.append(callback)

    def remove_observer(self, callback: SettingsObserver) -> None:
        """Remove a settings change observer."""
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify_observers(self) -> None:
        """Notify all observers of settings change."""
        for callback in self._observers:
            callback(self._settings)

    def _to_dict(self, settings: DiffViewSettings) -> dict:
        """Convert settings to dictionary for JSON serialization."""
        def convert(obj: Any) -> Any:
            if isinstance(obj, Enum):
                return obj.name
            elif isinstance(obj, dict):
                return {k: convert(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert(item) for item in obj]
            else:
                return obj

        return convert(asdict(settings))

    def _from_dict(self, data: dict) -> DiffViewSettings:
        """Convert dictionary back to settings objects."""
        def get_enum(enum_class: type, value: Any) -> Enum:
            if isinstance(value, str):
                try:
                    return enum_class[value]
                except KeyError:
                    return list(enum_class)[0]
            return value

        render_data = data.get('render', {})
        defaults = RenderSettings()
        render = RenderSettings(
            view_mode=get_enum(ViewMode, render_data.get('view_mode', defaults.view_mode.name)),
            highlight_line_limit=render_data.get('highlight_line_limit', defaults.highlight_line_limit),
            gap_expand_step=render_data.get('gap_expand_step', defaults.gap_expand_step),
            context_lines=render_data.get('context_lines', defaults.context_lines),
        )

        highlight_data = data.get('highlight', {})
        highlight_defaults = HighlightSettings()
        highlight = HighlightSettings(
            enabled=highlight_data.get('enabled', highlight_defaults.enabled),
            light_style=highlight_data.get('light_style', highlight_defaults.light_style),
            dark_style=highlight_data.get('dark_style', highlight_defaults.dark_style),
            cache_size=highlight_data.get('cache_size', highlight_defaults.cache_size),
            max_workers=highlight_data.get('max_workers', highlight_defaults.max_workers),
        )

        return DiffViewSettings(render=render, highlight=highlight)
