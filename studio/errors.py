from __future__ import annotations


class StudioError(Exception):
    pass


class InputError(StudioError):
    """Bad user input. Recoverable: report to the user and let them retry."""


class AssetLoadError(InputError):
    pass


class PatternCreationError(InputError):
    pass


class MissingSelectionError(InputError):
    pass


class UnknownTemplateError(InputError):
    pass


class LayerRangeError(InputError):
    pass


class PreconditionError(StudioError):
    """Caller defect. Surface immediately, never retry."""


class UnknownLayerError(PreconditionError):
    def __init__(self, layer_id: str) -> None:
        super().__init__(f"Unknown layer: {layer_id}")
        self.layer_id = layer_id


class RenderTargetError(PreconditionError):
    pass
