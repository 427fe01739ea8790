import pydantic
from pydantic.alias_generators import to_camel


class Model(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(
        extra="forbid", alias_generator=to_camel, populate_by_name=True
    )


class EndpointResponse(Model):
    """
    Body of a shields.io endpoint badge, see https://shields.io/badges/endpoint-badge
    """

    schema_version: int = 1
    label: str
    message: str
    is_error: bool = False

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)
