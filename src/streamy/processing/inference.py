"""Streaming inference over overlapping sliding windows.

Samples stream into one SlidingWindowBuffer per model feature. Once the first
prediction_window_width samples have arrived, a prediction runs every
stride_offset samples, each on the window whose most recent sample was just
written. Every window carries its own recurrent state between predictions, so
the model sees num_windows interleaved sequences instead of one, which makes it
respond stride_offset samples after a change instead of a full window width.

Results are published as PredictionEvent or ErrorEvent to subscribed observers.
The engine is not thread safe; InferenceCoordinator runs it on a single
dedicated worker thread.
"""

import collections
import enum
import math
import queue
import threading
import time
from typing import Callable, Iterable, Mapping, Optional, Sequence

import numpy as np

from streamy.core import config, exceptions, models
from streamy.ml import vendor
from streamy.processing import buffers

logger = config.get_logger()

Observer = Callable[[models.InferenceEvent], None]


class InferencePhase(str, enum.Enum):
    """Life cycle of an inference session."""

    idle = "idle"
    buffering = "buffering"
    predicting = "predicting"


def sorted_by_label(probabilities: Mapping[str, float]) -> list[tuple[str, float]]:
    """Order probabilities for display: shorter labels first, then alphabetically."""
    return sorted(probabilities.items(), key=lambda item: (len(item[0]), item[0]))


class BufferedInferenceEngine:
    """Feeds a sample stream to a windowed classifier.

    Attributes:
        model: The classifier.
        metadata: The classifier's metadata.
        num_windows: Number of overlapping sliding windows.
        buffers: One buffer per feature name.
        states: Recurrent state of every sliding window.
        write_index: Next write position in the buffers.
        buffer_filled: Whether the buffers have been filled once since the last
            reset.
        predictions_made: Count of successful predictions.
    """

    def __init__(self, model: vendor.ClassifierModel) -> None:
        """Initializes zeroed buffers and states for the model.

        Args:
            model: The classifier to feed.
        """
        self.model = model
        self.metadata = model.metadata
        width = self.metadata.prediction_window_width
        stride = self.metadata.stride_offset

        self.buffers = {
            name: buffers.SlidingWindowBuffer(width, stride)
            for name in self.metadata.feature_names
        }
        self.num_windows = buffers.window_count(width, stride)
        self.states = [
            np.zeros(self.metadata.state_size, dtype=np.float64)
            for _ in range(self.num_windows)
        ]
        self.write_index = 0
        self.buffer_filled = False
        self.predictions_made = 0
        self._started = False
        self._observers: list[Observer] = []

    @property
    def phase(self) -> InferencePhase:
        """Current phase of the session."""
        if not self._started:
            return InferencePhase.idle
        if not self.buffer_filled:
            return InferencePhase.buffering
        return InferencePhase.predicting

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer of prediction and error events.

        Args:
            observer: Called with every published event, on the thread running the
                engine.

        Returns:
            A function that unsubscribes the observer.
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def add(self, sample: Mapping[str, float]) -> None:
        """Buffer one sample and predict if a window is due.

        Args:
            sample: One value per feature name. Extra keys are ignored.

        Raises:
            ValueError: If the sample lacks a feature or a value is not a number.
                Nothing is buffered.
        """
        missing = [name for name in self.buffers if name not in sample]
        if missing:
            raise ValueError(f"Sample is missing features: {missing}")

        values = {}
        for name in self.buffers:
            try:
                values[name] = float(sample[name])
            except (TypeError, ValueError) as exc_info:
                raise ValueError(
                    f"Feature '{name}' is not a number: {sample[name]!r}"
                ) from exc_info

        self._started = True
        for name, buffer in self.buffers.items():
            buffer.write(self.write_index, values[name])

        self.write_index += 1
        if self.write_index == self.metadata.prediction_window_width:
            self.buffer_filled = True
            self.write_index = 0

        if self.buffer_filled and self.write_index % self.metadata.stride_offset == 0:
            self.predict(self.write_index // self.metadata.stride_offset)

    def add_vector(self, values: Sequence[float]) -> None:
        """Buffer one raw sample vector, ordered as the model's feature names.

        Raises:
            ValueError: If the vector length differs from the number of features.
        """
        names = self.metadata.feature_names
        if len(values) != len(names):
            raise ValueError(
                f"Expected {len(names)} values for features {list(names)}, "
                f"got {len(values)}."
            )
        self.add(dict(zip(names, values)))

    def predict(self, window_index: int) -> Optional[models.PredictionEvent]:
        """Run the model on one sliding window and publish the result.

        On success the window's recurrent state is replaced by the model's. On
        failure an ErrorEvent is published and all state is left unchanged.

        Args:
            window_index: The sliding window to predict on.

        Returns:
            The published prediction, or None if the prediction failed.
        """
        inputs = {
            name: buffer.window(window_index) for name, buffer in self.buffers.items()
        }
        try:
            output = self._validate_output(
                self.model.predict(inputs, self.states[window_index].copy())
            )
        except Exception as exc_info:
            error = exceptions.PredictionError(
                f"Prediction failed on window {window_index}: {exc_info}"
            )
            self._publish(
                models.ErrorEvent(window_index=window_index, message=str(error))
            )
            return None

        self.states[window_index] = output.state
        self.predictions_made += 1
        event = models.PredictionEvent(
            window_index=window_index,
            label=output.label,
            probabilities={
                label: 0.0 if math.isnan(value) else value
                for label, value in output.probabilities.items()
            },
        )
        self._publish(event)
        return event

    def reset_data(self) -> None:
        """Zero every buffer and recurrent state and start filling again."""
        for buffer in self.buffers.values():
            buffer.zero()
        for state in self.states:
            state.fill(0)
        self.write_index = 0
        self.buffer_filled = False
        logger.debug("Inference buffers reset.")

    def _validate_output(self, result: vendor.PredictResult) -> models.ModelOutput:
        """Normalize a model result and check the state shape.

        Raises:
            ValueError: If the result is malformed or the state does not match the
                model's state size.
        """
        if isinstance(result, tuple):
            label, probabilities, state = result
            result = models.ModelOutput(
                label=label, probabilities=dict(probabilities), state=np.asarray(state)
            )
        elif not isinstance(result, models.ModelOutput):
            result = models.ModelOutput.model_validate(result)

        state = np.asarray(result.state, dtype=np.float64).reshape(-1).copy()
        if state.shape != (self.metadata.state_size,):
            raise ValueError(
                f"Expected recurrent state of size {self.metadata.state_size}, "
                f"got {state.size}."
            )
        return result.model_copy(update={"state": state})

    def _publish(self, event: models.InferenceEvent) -> None:
        for observer in tuple(self._observers):
            try:
                observer(event)
            except Exception:
                logger.exception("Observer %r failed on %r", observer, event)


class RateMeter:
    """Counts events over a trailing time period."""

    def __init__(
        self, period: float = 1.0, clock: Callable[[], float] = time.monotonic
    ) -> None:
        """Initializes the meter.

        Args:
            period: Length of the trailing period in seconds.
            clock: Monotonic time source in seconds.
        """
        self.period = period
        self._clock = clock
        self._times: collections.deque[float] = collections.deque()
        self._lock = threading.Lock()

    def mark(self) -> None:
        """Record one event now."""
        with self._lock:
            self._times.append(self._clock())

    @property
    def rate(self) -> int:
        """Events recorded within the last period."""
        with self._lock:
            cutoff = self._clock() - self.period
            while self._times and self._times[0] <= cutoff:
                self._times.popleft()
            return len(self._times)


_STOP = object()


class InferenceCoordinator:
    """Runs a BufferedInferenceEngine on a single dedicated worker thread.

    Commands are queued and executed strictly in order, so buffer writes, resets
    and predictions never interleave. Observers are called on the worker thread.
    There is no admission control: if predictions are slower than samples arrive,
    samples queue up.

    Attributes:
        engine: The engine run by the worker.
        sample_rate: Samples received over the last second.
        prediction_rate: Predictions published over the last second.
    """

    def __init__(self, engine: BufferedInferenceEngine) -> None:
        """Initializes the coordinator. Call start() to begin processing.

        Args:
            engine: The engine to run.
        """
        self.engine = engine
        self.sample_rate = RateMeter()
        self.prediction_rate = RateMeter()
        self._commands: queue.Queue = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self.engine.subscribe(self._count_prediction)

    def __enter__(self) -> "InferenceCoordinator":
        """Start the worker."""
        self.start()
        return self

    def __exit__(self, *_: object) -> None:
        """Process queued commands, then stop the worker."""
        self.stop()

    def start(self) -> None:
        """Start the worker thread, if not already running."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(
            target=self._run, name="streamy-inference", daemon=True
        )
        self._thread.start()
        logger.debug("Inference worker started.")

    def stop(self) -> None:
        """Process queued commands, then stop the worker thread."""
        if self._thread is None:
            return
        self._commands.put(_STOP)
        self._thread.join()
        self._thread = None
        logger.debug("Inference worker stopped.")

    def join(self) -> None:
        """Block until every queued command has been processed."""
        self._commands.join()

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer of prediction and error events, see the engine."""
        return self.engine.subscribe(observer)

    def add(self, sample: Mapping[str, float]) -> None:
        """Queue one sample of feature values."""
        self.sample_rate.mark()
        self._commands.put((self.engine.add, (dict(sample),)))

    def add_vector(self, values: Iterable[float]) -> None:
        """Queue one raw sample vector, ordered as the model's feature names."""
        self.sample_rate.mark()
        self._commands.put((self.engine.add_vector, (list(values),)))

    def reset_data(self) -> None:
        """Queue a reset of all buffers and recurrent states."""
        self._commands.put((self.engine.reset_data, ()))

    def handle_button(self, state: models.ButtonState) -> None:
        """Reset on button release, which marks the end of a trial."""
        if state == models.ButtonState.up:
            self.reset_data()

    def _count_prediction(self, event: models.InferenceEvent) -> None:
        if isinstance(event, models.PredictionEvent):
            self.prediction_rate.mark()

    def _run(self) -> None:
        while True:
            command = self._commands.get()
            try:
                if command is _STOP:
                    return
                function, args = command
                function(*args)
            except ValueError as exc_info:
                logger.error("Dropped sample: %s", exc_info)
            except Exception:
                logger.exception("Inference command %r failed.", command)
            finally:
                self._commands.task_done()


def create_engine(
    model_vendor: vendor.ModelVendor,
    name: str,
    device_channels: Iterable[models.Channel],
) -> BufferedInferenceEngine:
    """Load a model for a device and build an engine for it.

    Raises:
        ModelLoadError: If the model cannot be loaded.
        ModelIncompatibilityError: If the device cannot feed the model.
    """
    model = model_vendor.load(name, device_channels)
    return BufferedInferenceEngine(model)
