"""
Response helper utilities for handling UUID conversions and model validation
"""
from typing import Any, Dict, List
import uuid
from pydantic import BaseModel


def convert_uuids_to_strings(obj: Any) -> Any:
    """
    Recursively convert UUID objects to strings in any data structure
    """
    if isinstance(obj, uuid.UUID):
        return str(obj)
    elif isinstance(obj, dict):
        return {key: convert_uuids_to_strings(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [convert_uuids_to_strings(item) for item in obj]
    elif hasattr(obj, '__table__'):
        # SQLAlchemy model: only attributes that are already loaded
        result = {}
        for key, value in obj.__dict__.items():
            if not key.startswith('_'):
                result[key] = convert_uuids_to_strings(value)
        return result
    else:
        return obj


def safe_model_validate(model_class: BaseModel, data: Any) -> BaseModel:
    """
    Safely validate a model by converting UUIDs to strings first
    """
    if hasattr(data, '__table__'):
        data = data.__dict__.copy()

    clean_data = convert_uuids_to_strings(data)

    if isinstance(clean_data, dict):
        clean_data = {k: v for k, v in clean_data.items() if not k.startswith('_')}

    return model_class.model_validate(clean_data)


def safe_model_validate_list(model_class: BaseModel, data_list: List[Any]) -> List[BaseModel]:
    """
    Safely validate a list of models by converting UUIDs to strings first
    """
    return [safe_model_validate(model_class, item) for item in data_list]


def user_to_dict(user) -> Dict[str, Any]:
    """Convert User model to dict with string UUIDs, without the password hash"""
    return {
        'id': str(user.id),
        'name': user.name,
        'email': user.email,
        'role': user.role,
        'company_name': user.company_name,
        'created_at': user.created_at,
        'updated_at': user.updated_at
    }
