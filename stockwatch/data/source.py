"""
Mock product source backed by a JSON file, read with async I/O.

Stands in for the inventory API that the admin UI fetches products from.
The file groups raw product payloads by branch:

    {"branches": {"1": [{"id": 1, "name": "...", "stocks": [...]}, ...]}}
"""

from typing import Any, Dict, List, Optional
import json
import logging
import aiofiles

from stockwatch.config import settings

logger = logging.getLogger(__name__)


class ProductSource:
    """
    Per-branch product snapshots loaded from a JSON file.
    Payloads are returned raw; normalization happens in the monitor.
    """

    def __init__(self, data_file: Optional[str] = None):
        self.data_file = data_file or settings.products_data_file
        self._cache: Optional[Dict[str, List[Dict[str, Any]]]] = None

    async def _load_branches(self) -> Dict[str, List[Dict[str, Any]]]:
        """
        Load branch data from the JSON file asynchronously.

        Returns:
            Dictionary of raw product lists keyed by branch id (as string)
        """
        # Read the file once; call invalidate() to pick up edits
        if self._cache is not None:
            return self._cache

        async with aiofiles.open(self.data_file, mode='r') as f:
            content = await f.read()

        data = json.loads(content)
        branches = data.get("branches", {}) if isinstance(data, dict) else {}
        self._cache = {str(branch_id): products for branch_id, products in branches.items()}
        logger.info(f"Loaded product data for {len(self._cache)} branch(es) from {self.data_file}")
        return self._cache

    async def get_products(self, branch_id: int) -> List[Dict[str, Any]]:
        """
        Fetch the product payloads of one branch.

        Args:
            branch_id: Branch identifier

        Returns:
            List of raw product payloads (empty for unknown branches)
        """
        branches = await self._load_branches()
        products = branches.get(str(branch_id))

        if products is None:
            logger.info(f"No products found for branch {branch_id}")
            return []
        return list(products)

    def invalidate(self) -> None:
        self._cache = None
