from pydantic import BaseModel, ConfigDict


class ConfigBaseModel(BaseModel):
    """Base model for the simulation configs.

    Unknown keys in a YAML config are rejected, and the docstring under each field becomes its schema description, so
    `model_json_schema()` documents every simulation parameter.
    """

    model_config = ConfigDict(extra="forbid", use_attribute_docstrings=True)
