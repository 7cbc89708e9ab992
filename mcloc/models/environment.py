"""
Static environment: room boundary walls and known landmarks.
"""

from __future__ import annotations

from dataclasses import dataclass

import tensorflow as tf


@dataclass(frozen=True)
class Environment:
    """
    Known map of the room.

    Parameters
    ----------
    walls : tuple
        Boundary segments ((x1, y1), (x2, y2)) in order. Not used by the
        filter.
    landmarks : tuple
        Landmark positions (x, y) in order. Measurements are aligned with
        this order.
    """

    walls: tuple
    landmarks: tuple

    def __post_init__(self) -> None:
        walls = tuple(
            (tuple(float(v) for v in start), tuple(float(v) for v in end))
            for start, end in self.walls
        )
        landmarks = tuple(tuple(float(v) for v in lm) for lm in self.landmarks)
        for lm in landmarks:
            if len(lm) != 2:
                raise ValueError(f"Landmarks must be 2D points, got {lm}")
        object.__setattr__(self, "walls", walls)
        object.__setattr__(self, "landmarks", landmarks)

    @property
    def num_landmarks(self) -> int:
        return len(self.landmarks)

    def landmark_tensor(self) -> tf.Tensor:
        """Landmark positions as a float32 tensor of shape (M, 2)."""
        return tf.constant(self.landmarks, dtype=tf.float32, shape=[len(self.landmarks), 2])


def square_room(size: float = 10.0) -> Environment:
    """
    Square room with corners (0, 0) and (size, size) and a landmark in every corner.

    Landmarks are ordered (0, 0), (0, size), (size, size), (size, 0).
    """
    s = float(size)
    walls = (
        ((0.0, 0.0), (s, 0.0)),   # bottom
        ((s, 0.0), (s, s)),       # right
        ((s, s), (0.0, s)),       # top
        ((0.0, s), (0.0, 0.0)),   # left
    )
    landmarks = (
        (0.0, 0.0),
        (0.0, s),
        (s, s),
        (s, 0.0),
    )
    return Environment(walls=walls, landmarks=landmarks)
