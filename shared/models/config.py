from typing import Literal

from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    Describes one environment setting a client needs before it can boot.

    The full variable name is built by the client as ``{CLIENT_TYPE}_{ENGINE}_{ENV_KEY}``,
    e.g. ``VECTOR_QDRANT_BASE_URL``.

    Attributes:
        env_key (str): The engine-local key of the environment variable (e.g. "BASE_URL").
        val_type (str): The expected value type. One of "string", "number", "bool", "list".
        default (str | int | float | bool | list | None): Fallback value. None marks the setting as required.
    """

    env_key: str
    val_type: Literal["string", "number", "bool", "list"] = "string"
    default: str | int | float | bool | list | None = None
