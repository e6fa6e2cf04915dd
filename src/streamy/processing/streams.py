"""Transforms applied to live sensor frames before inference."""

import enum
from typing import Optional, Sequence

import numpy as np

from streamy.core import models


class StreamSource(str, enum.Enum):
    """Live sensor streams a model can be fed with."""

    quaternion_deltas = "quaternion_deltas"
    quaternion = "quaternion"
    accelerometer = "accelerometer"

    @property
    def channel(self) -> models.Channel:
        """The device channel the stream is read from."""
        if self is StreamSource.accelerometer:
            return models.Channel.acceleration
        return models.Channel.quaternion

    @property
    def labels(self) -> tuple[str, ...]:
        """Labels of the values in one frame, in order."""
        if self is StreamSource.accelerometer:
            return ("X", "Y", "Z")
        return ("X", "Y", "Z", "W")


def quaternion_multiply(p: np.ndarray, q: np.ndarray) -> np.ndarray:
    """Hamilton product p * q of quaternions stored as (x, y, z, w).

    Both arguments may hold many quaternions along leading axes, the last axis
    being the four components.
    """
    px, py, pz, pw = np.moveaxis(np.asarray(p, dtype=np.float64), -1, 0)
    qx, qy, qz, qw = np.moveaxis(np.asarray(q, dtype=np.float64), -1, 0)
    return np.stack(
        [
            pw * qx + px * qw + py * qz - pz * qy,
            pw * qy - px * qz + py * qw + pz * qx,
            pw * qz + px * qy - py * qx + pz * qw,
            pw * qw - px * qx - py * qy - pz * qz,
        ],
        axis=-1,
    )


def quaternion_inverse(q: np.ndarray) -> np.ndarray:
    """Inverse of non-zero quaternions stored as (x, y, z, w) along the last axis.

    Raises:
        ValueError: If any quaternion is zero.
    """
    q = np.asarray(q, dtype=np.float64)
    norm_squared = np.sum(q * q, axis=-1, keepdims=True)
    if np.any(norm_squared == 0):
        raise ValueError("The zero quaternion has no inverse.")
    return q * np.array([-1.0, -1.0, -1.0, 1.0]) / norm_squared


def quaternion_delta(prior: np.ndarray, current: np.ndarray) -> np.ndarray:
    """Rotation from prior to current, current * prior^-1."""
    return quaternion_multiply(current, quaternion_inverse(prior))


class QuaternionDeltas:
    """Turns a stream of orientations into a stream of rotations between frames.

    The first frame passes through unchanged. Every later frame is replaced by the
    rotation from the previous raw frame to it.
    """

    def __init__(self) -> None:
        """Initializes the transform with no prior frame."""
        self._prior: Optional[np.ndarray] = None

    def __call__(self, frame: Sequence[float]) -> np.ndarray:
        """Transform one (x, y, z, w) frame."""
        current = np.asarray(frame, dtype=np.float64)
        if current.shape != (4,):
            raise ValueError(f"Expected an (x, y, z, w) quaternion, got {frame!r}.")
        prior, self._prior = self._prior, current
        if prior is None:
            return current
        return quaternion_delta(prior, current)

    def reset(self) -> None:
        """Forget the prior frame."""
        self._prior = None


def to_sample(values: Sequence[float], labels: Sequence[str]) -> dict[str, float]:
    """Label the values of one frame.

    Raises:
        ValueError: If the number of values and labels differ.
    """
    if len(values) != len(labels):
        raise ValueError(f"Expected {len(labels)} values, got {len(values)}.")
    return {label: float(value) for label, value in zip(labels, values)}
