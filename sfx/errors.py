"""Failure taxonomy for the sound player.

The :class:`SoundError` family describes recoverable failures.  They are never
raised out of :meth:`sfx.manager.SoundManager.play`; the manager records the
failure class in ``last_failure``, notifies the observer and returns ``None``.
The classes double as the ``reason`` reported for catalog entries that were
skipped.

:class:`InvariantViolation` is different: it means a caller reached into a
handle and broke the state machine, and it always propagates.
"""


class SoundError(Exception):
    """Base class for recoverable sound playback failures."""

    message = "Sound playback failed."


class InvalidSoundType(SoundError):
    message = "The 'none' sound type was requested. Specify a valid sound type."


class UnknownSoundType(SoundError):
    message = "No sound variant is registered for the requested sound type."


class PoolExhausted(SoundError):
    message = (
        "No playback handle was available. Increase the initial pool size, "
        "or enable on-demand pool growth."
    )


class MissingBuffer(SoundError):
    message = "Sound variant is missing its audio buffer and won't be used."


class InvalidRange(SoundError):
    message = "Sound variant has an invalid volume or pitch range and won't be used."


class EmptyCatalog(SoundError):
    message = "No usable sound variants are registered. No sounds can be played."


class InvariantViolation(RuntimeError):
    """A playback handle was driven outside its state machine."""


__all__ = [
    "EmptyCatalog",
    "InvalidRange",
    "InvalidSoundType",
    "InvariantViolation",
    "MissingBuffer",
    "PoolExhausted",
    "SoundError",
    "UnknownSoundType",
]
