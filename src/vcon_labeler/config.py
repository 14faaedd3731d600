"""Configuration handling."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List

import yaml

from .models import Party

logger = logging.getLogger("vcon_labeler")

DEFAULT_LABEL_TYPES = ["sentiment", "intent", "topic", "emotion"]


@dataclass
class SessionConfig:
    autosave: bool = True
    generator: str = "VConAudioLabeler"
    suffix: str = "-vcon.json"


@dataclass
class PartyConfig:
    id: str
    role: str = "unknown"
    name: str | None = None

    def to_party(self) -> Party:
        return Party(id=self.id, role=self.role, name=self.name)


def _default_left() -> PartyConfig:
    return PartyConfig(id="party-1", role="agent", name="Agent")


def _default_right() -> PartyConfig:
    return PartyConfig(id="party-2", role="customer", name="Customer")


@dataclass
class Config:
    base_dir: str = ""
    log_dir: str = "logs"
    log_level: str = "INFO"
    label_types: List[str] = field(default_factory=lambda: list(DEFAULT_LABEL_TYPES))
    default_label_type: str = "sentiment"
    loop_epsilon: float = 0.1
    default_region_length: float = 2.0
    session: SessionConfig = field(default_factory=SessionConfig)
    left_party: PartyConfig = field(default_factory=_default_left)
    right_party: PartyConfig = field(default_factory=_default_right)


def load_config(path: str) -> Config:
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    session = SessionConfig(**data.get("session", {}))
    parties = data.get("parties", {})
    left = PartyConfig(**parties["left"]) if "left" in parties else _default_left()
    right = PartyConfig(**parties["right"]) if "right" in parties else _default_right()
    label_types = [str(t) for t in data.get("label_types") or []] or list(DEFAULT_LABEL_TYPES)

    return Config(
        base_dir=data.get("base_dir", ""),
        log_dir=data.get("log_dir", "logs"),
        log_level=str(data.get("log_level", "INFO")),
        label_types=label_types,
        default_label_type=data.get("default_label_type", label_types[0]),
        loop_epsilon=float(data.get("loop_epsilon", 0.1)),
        default_region_length=float(data.get("default_region_length", 2.0)),
        session=session,
        left_party=left,
        right_party=right,
    )


def load_config_or_default(path: str | None) -> Config:
    if not path or not os.path.exists(path):
        return Config()
    try:
        return load_config(path)
    except (OSError, yaml.YAMLError, TypeError, ValueError, AttributeError) as exc:
        logger.warning("Config %s unusable, using defaults: %s", path, exc)
        return Config()


def save_config(path: str, config: Config) -> None:
    data = {
        "base_dir": config.base_dir,
        "log_dir": config.log_dir,
        "log_level": config.log_level,
        "label_types": list(config.label_types),
        "default_label_type": config.default_label_type,
        "loop_epsilon": config.loop_epsilon,
        "default_region_length": config.default_region_length,
        "session": {
            "autosave": config.session.autosave,
            "generator": config.session.generator,
            "suffix": config.session.suffix,
        },
        "parties": {
            "left": {
                "id": config.left_party.id,
                "role": config.left_party.role,
                "name": config.left_party.name,
            },
            "right": {
                "id": config.right_party.id,
                "role": config.right_party.role,
                "name": config.right_party.name,
            },
        },
    }
    with open(path, "w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False)
