"""
==============================================================================
Product Submitter Module
==============================================================================

Add-product flow for barcodes the registry does not know.

Flow:
----
1. Validate the user's fields (ValidationError on bad input)
2. Online  → POST /add-product
     success        → cache, Submitted(remote=True)
     network error  → go offline, continue with step 3
     server error   → counted, re-raised for the UI (not queued)
3. Offline → append to the pending queue and cache the record so it is
   visible locally at once: Submitted(remote=False, queued=True)

The online/offline decision uses the cached connectivity belief. No health
check is made per submission; a stale OFFLINE belief simply queues the
write until the next probe or sync.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Union

from halalscan.core.exceptions import NetworkError, RemoteServerError, ValidationError
from halalscan.schemas import (
    HalalStatus,
    ProductCategory,
    ProductRecord,
    SubmitOutcome,
    Submitted,
)
from halalscan.utils.validators import (
    BarcodeValidator,
    ProductNameValidator,
    split_ingredients,
)

from .cache import LocalProductCache
from .connectivity import ConnectivityState
from .pending_queue import PendingWriteQueue
from .remote import RegistryClient


# Module logger
logger = logging.getLogger(__name__)


IngredientsInput = Union[str, Iterable[str], None]


def build_record(
    barcode: str,
    name: str,
    category: Union[ProductCategory, str],
    ingredients: IngredientsInput = None,
    status: Union[HalalStatus, str, None] = None,
) -> ProductRecord:
    """
    Validate user-supplied fields and build a product record.

    Ingredients may be a list or a comma-separated string. A missing status
    defaults to NonFoodItem for non-food products and Unknown for food.

    Raises:
        ValidationError: A field is missing or not a known value
    """
    is_valid, barcode_value, error = BarcodeValidator().validate(barcode)
    if not is_valid:
        raise ValidationError(error, "barcode")

    is_valid, name_value, error = ProductNameValidator().validate(name)
    if not is_valid:
        raise ValidationError(error, "name")

    try:
        category_value = ProductCategory(category)
    except ValueError:
        raise ValidationError(
            f"Unknown category '{category}', expected food or non-food", "category"
        ) from None

    if status is None or (isinstance(status, str) and not status.strip()):
        status_value = (
            HalalStatus.UNKNOWN if category_value == ProductCategory.FOOD
            else HalalStatus.NON_FOOD_ITEM
        )
    else:
        try:
            status_value = HalalStatus(status)
        except ValueError:
            allowed = ", ".join(s.value for s in HalalStatus)
            raise ValidationError(
                f"Unknown status '{status}', expected one of {allowed}", "status"
            ) from None

    if ingredients is None:
        ingredient_list = []
    elif isinstance(ingredients, str):
        ingredient_list = split_ingredients(ingredients)
    else:
        ingredient_list = [str(i).strip() for i in ingredients if str(i).strip()]

    if (
        category_value == ProductCategory.FOOD
        and status_value != HalalStatus.UNKNOWN
        and not ingredient_list
    ):
        logger.debug(f"{barcode_value}: food product submitted without ingredients")

    return ProductRecord(
        barcode=barcode_value,
        name=name_value,
        category=category_value,
        ingredients=ingredient_list,
        status=status_value,
    )


class ProductSubmitter:
    """
    Submits user-authored products, queueing them while offline.

    Example:
        >>> submitter = ProductSubmitter(cache, queue, client, connectivity)
        >>> outcome = await submitter.submit("000111", "Biscuit", "food", "flour,water")
        >>> outcome.queued
        False
    """

    def __init__(
        self,
        cache: LocalProductCache,
        queue: PendingWriteQueue,
        remote: RegistryClient,
        connectivity: ConnectivityState,
    ) -> None:
        self._cache = cache
        self._queue = queue
        self._remote = remote
        self._connectivity = connectivity

    async def submit(
        self,
        barcode: str,
        name: str,
        category: Union[ProductCategory, str] = ProductCategory.FOOD,
        ingredients: IngredientsInput = None,
        status: Optional[Union[HalalStatus, str]] = None,
    ) -> SubmitOutcome:
        """
        Submit a new product.

        Raises:
            ValidationError: Bad user input
            RemoteServerError: The registry refused the product
        """
        record = build_record(barcode, name, category, ingredients, status)

        if self._connectivity.is_online:
            try:
                await self._remote.add_product(record)
            except NetworkError as e:
                self._connectivity.mark_offline(e.message)
                logger.warning(f"⚠️ Submit of {record.barcode} failed ({e.message}), queueing")
            except RemoteServerError as e:
                self._connectivity.record_server_error(e.upstream_status)
                logger.error(f"❌ Registry rejected {record.barcode}: {e.message}")
                raise
            else:
                self._connectivity.mark_online()
                await self._cache.put(record)
                logger.info(f"📤 Submitted {record.barcode} to registry")
                return Submitted(record=record, remote=True, queued=False)

        return await self._queue_locally(record)

    async def _queue_locally(self, record: ProductRecord) -> SubmitOutcome:
        await self._queue.enqueue(record)
        await self._cache.put(record)
        return Submitted(record=record, remote=False, queued=True)
