"""Modèles des documents et pages renvoyés par le moteur Typesense."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SearchDocument(BaseModel):
    """
    Document normalisé issu d'une recherche

    Tous les champs du document brut sont conservés (extra="allow") ; les champs
    connus sont typés. `id` est l'identifiant brut du document Typesense et
    `objectID` en est toujours l'alias.
    """

    id: str = Field(..., min_length=1, description="Identifiant du document")
    object_id: str = Field(default="", alias="objectID", description="Alias de id")

    # Catalogue
    product_name: Optional[str] = Field(None, alias="productName")
    price: Optional[float] = None
    original_price: Optional[float] = Field(None, alias="originalPrice")
    discount_percentage: Optional[float] = Field(None, alias="discountPercentage")
    brand_model: Optional[str] = Field(None, alias="brandModel")
    currency: Optional[str] = None
    condition: Optional[str] = None
    gender: Optional[str] = None
    quantity: Optional[int] = None

    # Catégories (clé brute + libellés localisés)
    category: Optional[str] = None
    subcategory: Optional[str] = None
    subsubcategory: Optional[str] = None
    category_en: Optional[str] = None
    category_tr: Optional[str] = None
    category_ru: Optional[str] = None
    subcategory_en: Optional[str] = None
    subcategory_tr: Optional[str] = None
    subcategory_ru: Optional[str] = None
    subsubcategory_en: Optional[str] = None
    subsubcategory_tr: Optional[str] = None
    subsubcategory_ru: Optional[str] = None

    # Médias et variantes
    image_urls: Optional[List[str]] = Field(None, alias="imageUrls")
    available_colors: Optional[List[str]] = Field(None, alias="availableColors")
    color_images_json: Optional[str] = Field(None, alias="colorImagesJson")
    color_quantities_json: Optional[str] = Field(None, alias="colorQuantitiesJson")
    video_url: Optional[str] = Field(None, alias="videoUrl")

    # Vendeur
    shop_id: Optional[str] = Field(None, alias="shopId")
    owner_id: Optional[str] = Field(None, alias="ownerId")
    user_id: Optional[str] = Field(None, alias="userId")
    seller_name: Optional[str] = Field(None, alias="sellerName")

    # Promotion, popularité
    promotion_score: Optional[float] = Field(None, alias="promotionScore")
    is_boosted: Optional[bool] = Field(None, alias="isBoosted")
    is_featured: Optional[bool] = Field(None, alias="isFeatured")
    average_rating: Optional[float] = Field(None, alias="averageRating")
    review_count: Optional[int] = Field(None, alias="reviewCount")
    purchase_count: Optional[int] = Field(None, alias="purchaseCount")
    best_seller_rank: Optional[int] = Field(None, alias="bestSellerRank")
    delivery_option: Optional[str] = Field(None, alias="deliveryOption")
    paused: Optional[bool] = None
    bundle_ids: Optional[List[str]] = Field(None, alias="bundleIds")
    campaign_name: Optional[str] = Field(None, alias="campaignName")
    discount_threshold: Optional[int] = Field(None, alias="discountThreshold")
    bulk_discount_percentage: Optional[float] = Field(None, alias="bulkDiscountPercentage")

    # Horodatages
    created_at: Optional[int] = Field(None, alias="createdAt")
    timestamp_for_sorting: Optional[int] = Field(None, alias="timestampForSorting")

    # Commandes
    order_id: Optional[str] = Field(None, alias="orderId")
    product_id: Optional[str] = Field(None, alias="productId")
    buyer_id: Optional[str] = Field(None, alias="buyerId")
    seller_id: Optional[str] = Field(None, alias="sellerId")
    buyer_name: Optional[str] = Field(None, alias="buyerName")
    searchable_text: Optional[str] = Field(None, alias="searchableText")

    # Boutiques
    name: Optional[str] = None
    profile_image_url: Optional[str] = Field(None, alias="profileImageUrl")
    cover_image_urls: Optional[List[str]] = Field(None, alias="coverImageUrls")
    address: Optional[str] = None
    follower_count: Optional[int] = Field(None, alias="followerCount")
    click_count: Optional[int] = Field(None, alias="clickCount")
    categories: Optional[List[str]] = None
    contact_no: Optional[str] = Field(None, alias="contactNo")
    is_active: Optional[bool] = Field(None, alias="isActive")

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )

    @model_validator(mode="before")
    @classmethod
    def sync_object_id(cls, data: Any) -> Any:
        """id est toujours une chaîne et objectID lui est toujours égal"""
        if isinstance(data, dict) and data.get("id") is not None:
            data = {k: v for k, v in data.items() if k != "object_id"}
            data["id"] = str(data["id"])
            data["objectID"] = data["id"]
        return data

    def localized(self, field: str, language: str) -> Optional[str]:
        """Libellé localisé `{field}_{language}`, avec repli sur l'anglais"""
        value = getattr(self, f"{field}_{language}", None)
        if value is None and self.model_extra:
            value = self.model_extra.get(f"{field}_{language}")
        if value is None:
            value = getattr(self, f"{field}_en", None)
        return value


class SearchPage(BaseModel):
    """Page de résultats paginée : identifiants d'origine + documents, même ordre"""

    ids: List[str] = Field(default_factory=list)
    hits: List[SearchDocument] = Field(default_factory=list)
    page: int = Field(0, ge=0, description="Index de page demandé (base 0)")
    nb_pages: int = Field(1, ge=1, alias="nbPages")

    model_config = ConfigDict(populate_by_name=True)


class CategorySuggestion(BaseModel):
    """Suggestion de catégorie pour l'autocomplétion"""

    category_key: str = Field(..., alias="categoryKey")
    subcategory_key: Optional[str] = Field(None, alias="subcategoryKey")
    subsubcategory_key: Optional[str] = Field(None, alias="subsubcategoryKey")
    display_name: str = Field(..., alias="displayName")
    level: int = Field(..., ge=0, le=2)
    language: str

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class FacetCount(BaseModel):
    """Valeur d'une facette et son nombre d'occurrences"""

    value: str
    count: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)
