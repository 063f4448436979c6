"""ModelSelection and ModelRunner: which models a run is executed against."""

from pydantic import BaseModel, Field


class ModelSelection(BaseModel, frozen=True):
    """A user's choice of provider and model, e.g. ``openai`` / ``openai/gpt-4o``."""

    provider: str = Field(min_length=1)
    model_id: str = Field(min_length=1)


class ModelRunner(BaseModel, frozen=True):
    """A resolved, configured model that units are executed against."""

    id: str = Field(min_length=1)
    provider: str = Field(min_length=1)
    model_id: str = Field(min_length=1)

    @classmethod
    def from_selection(cls, selection: ModelSelection) -> "ModelRunner":
        return cls(
            id=f"{selection.provider} ({selection.model_id})",
            provider=selection.provider,
            model_id=selection.model_id,
        )
