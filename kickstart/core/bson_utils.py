# kickstart/core/bson_utils.py
# Type ObjectId compatible Pydantic v2 et modèle de base pour les documents Mongo.
from __future__ import annotations

from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, GetCoreSchemaHandler
from pydantic.json_schema import GetJsonSchemaHandler, JsonSchemaValue
from pydantic_core import core_schema


class PyObjectId(ObjectId):
    """ObjectId utilisable comme champ Pydantic.

    Description:
        Accepte un `ObjectId` ou sa forme hexadécimale (24 caractères), se sérialise
        en chaîne et publie un schéma OpenAPI de type `string`.
    """

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.json_or_python_schema(
            json_schema=core_schema.no_info_plain_validator_function(cls.coerce),
            python_schema=core_schema.no_info_plain_validator_function(cls.coerce),
            serialization=core_schema.plain_serializer_function_ser_schema(str, when_used="json"),
        )

    @classmethod
    def __get_pydantic_json_schema__(cls, schema: core_schema.CoreSchema, handler: GetJsonSchemaHandler) -> JsonSchemaValue:
        return {"type": "string", "format": "objectid", "pattern": "^[a-fA-F0-9]{24}$"}

    @classmethod
    def coerce(cls, value: Any) -> ObjectId:
        """Convertit `value` en ObjectId.

        Raises:
            ValueError: Si la valeur n'est ni un ObjectId ni une chaîne hexadécimale valide.
        """
        if isinstance(value, ObjectId):
            return value
        if isinstance(value, str) and ObjectId.is_valid(value):
            return ObjectId(value)
        raise ValueError(f"Invalid ObjectId: {value!r}")


class MongoBaseModel(BaseModel):
    """Document Mongo : `_id` exposé sous le nom `id`."""

    id: Optional[PyObjectId] = Field(default=None, alias="_id")

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)


def dump_mongo(model: BaseModel, *, exclude_none: bool = True) -> dict:
    """Dict prêt pour Mongo (alias `_id`, ObjectId conservés tels quels)."""
    return model.model_dump(by_alias=True, exclude_none=exclude_none)
