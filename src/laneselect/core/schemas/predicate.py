"""Lane predicate configuration schema."""
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PREDICATE = "default"


class LanePredicate(BaseModel):
    """One ``{outputLane, predicate}`` entry of the routing configuration.

    The last entry of a configuration must use the literal predicate
    ``"default"``. That value is a marker for the fallback lane and is never
    evaluated.
    """
    output_lane: str = Field(..., alias="outputLane", description="Lane receiving matching records")
    predicate: str = Field(..., description="Boolean expression in ${...}, or 'default'")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def is_default(self) -> bool:
        return self.predicate == DEFAULT_PREDICATE
