"""Double written circular buffer serving overlapping prediction windows."""

import math

import numpy as np


def window_count(prediction_window_width: int, stride_offset: int) -> int:
    """Number of sliding windows needed so a window starts every stride_offset."""
    return math.ceil(prediction_window_width / stride_offset)


class SlidingWindowBuffer:
    """Buffer of one input feature, sliced into overlapping prediction windows.

    The buffer is prediction_window_width + (num_windows - 1) * stride_offset long.
    A sample written at index i is also written at i + prediction_window_width when
    that lies within the buffer. Once the first prediction_window_width indices have
    been written, every slice starting at a multiple of stride_offset therefore
    holds prediction_window_width consecutive samples in chronological order,
    without copying or wrapping around.

    Attributes:
        prediction_window_width: Samples per window.
        stride_offset: Samples between the starts of consecutive windows.
        num_windows: Number of overlapping windows.
        buffer_width: Length of the underlying array.
    """

    def __init__(self, prediction_window_width: int, stride_offset: int) -> None:
        """Initializes a zeroed buffer.

        Args:
            prediction_window_width: Samples per window.
            stride_offset: Samples between the starts of consecutive windows.

        Raises:
            ValueError: If stride_offset is not in [1, prediction_window_width].
        """
        if not 0 < stride_offset <= prediction_window_width:
            raise ValueError(
                "stride_offset must be between 1 and prediction_window_width, got "
                f"{stride_offset} for width {prediction_window_width}."
            )
        self.prediction_window_width = prediction_window_width
        self.stride_offset = stride_offset
        self.num_windows = window_count(prediction_window_width, stride_offset)
        self.buffer_width = prediction_window_width + (self.num_windows - 1) * (
            stride_offset
        )
        self._data = np.zeros(self.buffer_width, dtype=np.float64)

    def write(self, index: int, value: float) -> None:
        """Write a sample at index and at its mirror in the second half.

        Args:
            index: Write position, in [0, prediction_window_width).
            value: The sample.

        Raises:
            IndexError: If index is out of range.
        """
        if not 0 <= index < self.prediction_window_width:
            raise IndexError(
                f"Write index {index} outside [0, {self.prediction_window_width})."
            )
        self._data[index] = value
        mirror = index + self.prediction_window_width
        if mirror < self.buffer_width:
            self._data[mirror] = value

    def window(self, window_index: int) -> np.ndarray:
        """Read-only view of the samples of one sliding window.

        Args:
            window_index: Window number, in [0, num_windows).

        Returns:
            The prediction_window_width samples starting at
            window_index * stride_offset.

        Raises:
            IndexError: If window_index is out of range.
        """
        if not 0 <= window_index < self.num_windows:
            raise IndexError(
                f"Window index {window_index} outside [0, {self.num_windows})."
            )
        start = window_index * self.stride_offset
        view = self._data[start : start + self.prediction_window_width]
        view.flags.writeable = False
        return view

    def zero(self) -> None:
        """Overwrite every sample with zero."""
        self._data.fill(0)
