"""YAML configuration for the sound player.

Example ``config/sounds.yaml``::

    audio:
      initial_pool_size: 10
      can_grow_pool: true
      check_unassigned_sounds: true
      release_margin: 0.05
      retry_release_wait: 0.1
      origin: [0.0, 0.0, 0.0]
      rng_seed: null
    sound_effects:
      - type: explosion
        file: explosion1.wav      # relative to the "sounds" directory
        volume: [0.8, 1.0]
        pitch: [0.9, 1.1]
      - type: click
        length: 0.1               # synthetic buffer, no file needed

Entry problems (unreadable file, missing buffer) do not abort loading: the
entry becomes a variant without a buffer, which the catalog reports and skips.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import structlog
import yaml

from sfx.buffers import AudioBuffer, load_buffer
from sfx.handle import RELEASE_MARGIN, RETRY_RELEASE_WAIT
from sfx.types import ORIGIN, GameSound, SoundKey, SoundVariant, Vector3

log = structlog.get_logger(__name__)

VariantSource = Callable[[], List[SoundVariant]]


@dataclass(frozen=True)
class SoundManagerConfig:
    """Settings for :class:`sfx.manager.SoundManager`.

    ``origin`` is the rest position every pooled source is moved to when it is
    created, and returned to after a positioned play.
    """

    initial_pool_size: int = 10
    can_grow_pool: bool = True
    check_unassigned_sounds: bool = True
    release_margin: float = RELEASE_MARGIN
    retry_release_wait: float = RETRY_RELEASE_WAIT
    origin: Vector3 = ORIGIN
    rng_seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.initial_pool_size < 0:
            raise ValueError("initial_pool_size must be non-negative")
        if self.release_margin < 0 or self.retry_release_wait <= 0:
            raise ValueError(
                "release_margin must be >= 0 and retry_release_wait must be > 0"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SoundManagerConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            log.warning("Ignoring unknown audio settings", keys=sorted(unknown))
        values = {k: v for k, v in data.items() if k in known}
        if "origin" in values:
            values["origin"] = _parse_vector(values["origin"])
        return cls(**values)


def _parse_vector(value: Any) -> Vector3:
    coords = tuple(float(c) for c in value)
    if len(coords) == 2:
        coords = (coords[0], coords[1], 0.0)
    if len(coords) != 3:
        raise ValueError(f"Expected 2 or 3 coordinates, got {value!r}")
    return coords


def _parse_range(value: Any, default: float = 1.0) -> Tuple[float, float]:
    """Accept a scalar or a ``[low, high]`` pair."""
    if value is None:
        return default, default
    if isinstance(value, (int, float)):
        return float(value), float(value)
    low, high = value
    return float(low), float(high)


def parse_sound_type(value: Any) -> SoundKey:
    """Map config strings onto :class:`GameSound` where possible."""
    if value is None:
        return GameSound.NONE
    try:
        return GameSound(str(value).lower())
    except ValueError:
        return str(value)


def variant_from_entry(entry: Dict[str, Any], sounds_dir: Path) -> SoundVariant:
    sound_type = parse_sound_type(entry.get("type"))
    buffer: Optional[AudioBuffer] = None
    if "file" in entry:
        buffer = load_buffer(sounds_dir / entry["file"])
    elif "length" in entry:
        buffer = AudioBuffer(
            name=str(entry.get("name", sound_type)), length=float(entry["length"])
        )
    volume_low, volume_high = _parse_range(entry.get("volume"))
    pitch_low, pitch_high = _parse_range(entry.get("pitch"))
    return SoundVariant(
        sound_type=sound_type,
        buffer=buffer,
        volume_low=volume_low,
        volume_high=volume_high,
        pitch_low=pitch_low,
        pitch_high=pitch_high,
    )


def variants_from_config(
    entries: List[Dict[str, Any]], sounds_dir: Path
) -> List[SoundVariant]:
    variants: List[SoundVariant] = []
    for index, entry in enumerate(entries):
        try:
            variants.append(variant_from_entry(entry, sounds_dir))
        except (AttributeError, TypeError, ValueError) as e:
            log.warning("Skipping malformed sound entry", index=index, error=str(e))
    return variants


def load_yaml_config(config_path: Path) -> Dict[str, Any]:
    """Loads the sound YAML file; an empty file yields an empty dict."""
    if not config_path.is_file():
        log.error("Sound config file not found", path=str(config_path))
        raise FileNotFoundError(f"Sound configuration file not found: {config_path}")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        log.error(
            "Error parsing sound config YAML",
            path=str(config_path),
            error=str(e),
            exc_info=True,
        )
        raise
    if config_data is None:
        log.warning("Sound config file is empty.", path=str(config_path))
        return {}
    return config_data


def load_sound_config(
    config_path: Path, sounds_dir: Optional[Path] = None
) -> Tuple[SoundManagerConfig, VariantSource]:
    """
    Returns the manager settings and a variant source.
    The variant source re-reads ``config_path`` on every call, so
    ``SoundManager.rebuild()`` picks up edits made while the game runs.
    """
    data = load_yaml_config(config_path)
    config = SoundManagerConfig.from_dict(data.get("audio") or {})
    if sounds_dir is None:
        sounds_dir = config_path.parent / "sounds"

    def variant_source() -> List[SoundVariant]:
        current = load_yaml_config(config_path)
        return variants_from_config(current.get("sound_effects") or [], sounds_dir)

    log.info(
        "Sound config loaded",
        path=str(config_path),
        entries=len(data.get("sound_effects") or []),
    )
    return config, variant_source
