"""Look up classifier models and check them against a device's channels."""

from typing import Callable, Iterable, Mapping, Optional, Protocol, Union

import numpy as np

from streamy.core import config, exceptions, models

logger = config.get_logger()

PredictResult = Union[
    models.ModelOutput, tuple[str, Mapping[str, float], np.ndarray]
]


class ClassifierModel(Protocol):
    """A windowed classifier with recurrent state.

    predict receives one window of samples per feature name and the recurrent state
    produced by the previous prediction on the same window. It returns the label,
    the probability of every label, and the updated state, either as a ModelOutput
    or as a (label, probabilities, state) tuple.
    """

    metadata: models.ModelMetadata

    def predict(
        self, inputs: Mapping[str, np.ndarray], state: np.ndarray
    ) -> PredictResult:
        """Predict a label for one window."""
        ...


class CallableModel:
    """Adapts a plain prediction function to the ClassifierModel protocol."""

    def __init__(
        self,
        metadata: models.ModelMetadata,
        predict_fn: Callable[[Mapping[str, np.ndarray], np.ndarray], PredictResult],
    ) -> None:
        """Initializes the model.

        Args:
            metadata: Static description of the model.
            predict_fn: Called with the window inputs and the recurrent state.
        """
        self.metadata = metadata
        self._predict_fn = predict_fn

    def predict(
        self, inputs: Mapping[str, np.ndarray], state: np.ndarray
    ) -> PredictResult:
        """Predict a label for one window."""
        return self._predict_fn(inputs, state)


ModelFactory = Callable[[], ClassifierModel]


class ModelVendor:
    """Registry of named model factories."""

    def __init__(self, factories: Optional[Mapping[str, ModelFactory]] = None) -> None:
        """Initializes the vendor.

        Args:
            factories: Initial models, by name.
        """
        self._factories: dict[str, ModelFactory] = dict(factories or {})

    def register(self, name: str, factory: ModelFactory) -> None:
        """Make a model available under name, replacing any model of that name."""
        self._factories[name] = factory

    def enumerate_models(self) -> list[str]:
        """Names of every available model, sorted."""
        return sorted(self._factories)

    def load(
        self, name: str, device_channels: Iterable[models.Channel]
    ) -> ClassifierModel:
        """Load a model and check the device can feed it.

        Args:
            name: The model name.
            device_channels: Channels the connected device offers.

        Returns:
            The loaded model.

        Raises:
            ModelLoadError: If no model has that name, or loading it failed.
            ModelIncompatibilityError: If the device lacks a channel the model
                requires.
        """
        factory = self._factories.get(name)
        if factory is None:
            raise exceptions.ModelLoadError(
                f"No model named '{name}'. Available: {self.enumerate_models()}"
            )

        try:
            model = factory()
        except Exception as exc_info:
            raise exceptions.ModelLoadError(
                f"Could not load model '{name}': {exc_info}"
            ) from exc_info

        if not isinstance(getattr(model, "metadata", None), models.ModelMetadata):
            raise exceptions.ModelLoadError(
                f"Model '{name}' does not describe its parameters."
            )

        missing = model.metadata.required_channels - set(device_channels)
        if missing:
            raise exceptions.ModelIncompatibilityError(
                f"Your device doesn't support model '{name}', missing channels: "
                f"{sorted(channel.value for channel in missing)}"
            )

        logger.info("Loaded model '%s'.", name)
        return model
