"""
Modèles des restaurants et plats (collections `restaurants` et `foods`).

Chaque champ est converti individuellement : une valeur mal typée devient
None (ou la valeur par défaut) au lieu de faire échouer tout le document.
"""

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .documents import FacetCount


def _text(value: Any) -> str:
    """Texte ; une liste est jointe par des virgules"""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ",".join(_text(item) for item in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _optional_text(value: Any) -> Optional[str]:
    return None if value is None else _text(value)


def _number(value: Any) -> float:
    """Conversion numérique, 0 si la valeur n'est pas un nombre fini"""
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _optional_number(value: Any) -> Optional[float]:
    return None if value is None else _number(value)


def _string_list(value: Any) -> Optional[List[str]]:
    """Liste de textes ; toute autre valeur est ignorée"""
    if not isinstance(value, (list, tuple)):
        return None
    return [_text(item) for item in value]


class Restaurant(BaseModel):
    """Restaurant normalisé ; `id` est l'identifiant d'origine (préfixe retiré)"""

    id: str
    name: str = ""
    address: Optional[str] = None
    contact_no: Optional[str] = Field(None, alias="contactNo")
    profile_image_url: Optional[str] = Field(None, alias="profileImageUrl")
    owner_id: Optional[str] = Field(None, alias="ownerId")
    is_active: bool = Field(False, alias="isActive")
    is_boosted: bool = Field(False, alias="isBoosted")
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    average_rating: Optional[float] = Field(None, alias="averageRating")
    review_count: Optional[float] = Field(None, alias="reviewCount")
    click_count: Optional[float] = Field(None, alias="clickCount")
    follower_count: Optional[float] = Field(None, alias="followerCount")
    food_type: Optional[List[str]] = Field(None, alias="foodType")
    cuisine_types: Optional[List[str]] = Field(None, alias="cuisineTypes")
    working_days: Optional[List[str]] = Field(None, alias="workingDays")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("id", "name", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _text(v)

    @field_validator("address", "contact_no", "profile_image_url", "owner_id", mode="before")
    @classmethod
    def coerce_optional_text(cls, v: Any) -> Optional[str]:
        return _optional_text(v)

    @field_validator(
        "latitude", "longitude", "average_rating", "review_count", "click_count", "follower_count",
        mode="before",
    )
    @classmethod
    def coerce_number(cls, v: Any) -> Optional[float]:
        return _optional_number(v)

    @field_validator("food_type", "cuisine_types", "working_days", mode="before")
    @classmethod
    def coerce_list(cls, v: Any) -> Optional[List[str]]:
        return _string_list(v)

    @field_validator("is_active", "is_boosted", mode="before")
    @classmethod
    def strict_flag(cls, v: Any) -> bool:
        return v is True


class Food(BaseModel):
    """Plat normalisé ; `id` est l'identifiant d'origine (préfixe retiré)"""

    id: str
    name: str = ""
    description: Optional[str] = None
    price: float = 0.0
    food_category: str = Field("", alias="foodCategory")
    food_type: str = Field("", alias="foodType")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    is_available: bool = Field(False, alias="isAvailable")
    preparation_time: Optional[float] = Field(None, alias="preparationTime")
    restaurant_id: str = Field("", alias="restaurantId")
    extras: Optional[List[str]] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("id", "name", "food_category", "food_type", "restaurant_id", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _text(v)

    @field_validator("description", "image_url", mode="before")
    @classmethod
    def coerce_optional_text(cls, v: Any) -> Optional[str]:
        return _optional_text(v)

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> float:
        return _number(v)

    @field_validator("preparation_time", mode="before")
    @classmethod
    def coerce_number(cls, v: Any) -> Optional[float]:
        return _optional_number(v)

    @field_validator("extras", mode="before")
    @classmethod
    def coerce_list(cls, v: Any) -> Optional[List[str]]:
        return _string_list(v)

    @field_validator("is_available", mode="before")
    @classmethod
    def strict_flag(cls, v: Any) -> bool:
        return v is True


class RestaurantSearchPage(BaseModel):
    items: List[Restaurant] = Field(default_factory=list)
    ids: List[str] = Field(default_factory=list)
    page: int = 0
    nb_pages: int = Field(1, alias="nbPages")
    total: int = 0

    model_config = ConfigDict(populate_by_name=True)


class FoodSearchPage(BaseModel):
    items: List[Food] = Field(default_factory=list)
    ids: List[str] = Field(default_factory=list)
    page: int = 0
    nb_pages: int = Field(1, alias="nbPages")
    total: int = 0

    model_config = ConfigDict(populate_by_name=True)


# Facettes par champ : {"cuisineTypes": [FacetCount, ...], ...}
FacetMap = Dict[str, List[FacetCount]]
