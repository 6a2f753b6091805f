import logging
from typing import Any, Optional

import requests

from core import constants
from core.config import settings
from core.exceptions import GatewayError, TransportError
from schemas.asset import AssetSpec
from schemas.balance import Balance
from schemas.breeze import FundRequestParams, UserBalancesResponse, UserYieldResponse

logger = logging.getLogger(__name__)


def create_header(api_key: str) -> dict[str, Any]:
    return {
        "accept": "application/json",
        "content-type": "application/json",
        constants.BREEZE_API_KEY_HEADER: api_key,
    }


class BreezeService:
    """HTTP client for the Breeze fund service.

    ``quote_deposit``/``quote_withdraw`` implement the fund request gateway;
    the remaining calls are read-only lookups used for sizing and display.
    """

    def __init__(
        self,
        api_url: str = None,
        api_key: str = None,
        timeout: float = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = (api_url or settings.BREEZE_API_URL).rstrip("/")
        self.api_key = api_key or settings.BREEZE_API_KEY
        self.timeout = timeout or settings.BREEZE_REQUEST_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def quote_deposit(
        self, fund_id: str, amount: int, use_all: bool, user_key: str
    ) -> str:
        params = FundRequestParams(
            fund_id=fund_id, amount=amount, all=use_all, user_key=user_key
        )
        return self._request_transaction(constants.BREEZE_DEPOSIT_TX_PATH, params)

    def quote_withdraw(
        self, fund_id: str, amount: int, use_all: bool, user_key: str
    ) -> str:
        params = FundRequestParams(
            fund_id=fund_id, amount=amount, all=use_all, user_key=user_key
        )
        return self._request_transaction(constants.BREEZE_WITHDRAW_TX_PATH, params)

    def get_user_balances(self, user_key: str) -> UserBalancesResponse:
        path = constants.BREEZE_USER_BALANCES_PATH.format(user_key=user_key)
        data = self._get(path)
        return UserBalancesResponse.model_validate(data)

    def get_user_yield(
        self,
        user_key: str,
        fund_id: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> UserYieldResponse:
        path = constants.BREEZE_USER_YIELD_PATH.format(user_key=user_key)
        query = {"page": page, "limit": limit}
        if fund_id:
            query["fund_id"] = fund_id
        data = self._get(path, params=query)
        return UserYieldResponse.model_validate(data)

    def get_fund_position(
        self, user_key: str, fund_id: str, asset: AssetSpec
    ) -> Balance:
        """Withdrawable position in ``fund_id``, in the asset's base units."""
        balances = self.get_user_balances(user_key)
        for entry in balances.data:
            yield_balance = entry.yield_balance
            if yield_balance is None or yield_balance.fund_id != fund_id:
                continue
            if entry.decimals != asset.decimals:
                raise GatewayError(
                    f"Fund {fund_id} reports {entry.decimals} decimals for "
                    f"{entry.token_symbol}, expected {asset.decimals}"
                )
            return Balance(asset=asset, raw=int(yield_balance.funds))
        return Balance.zero(asset)

    def _request_transaction(self, path: str, params: FundRequestParams) -> str:
        body = {"params": params.model_dump()}
        logger.info(
            "Requesting %s for %s: amount=%s all=%s",
            path,
            params.user_key,
            params.amount,
            params.all,
        )
        try:
            response = self.session.post(
                f"{self.api_url}{path}",
                headers=create_header(self.api_key),
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Breeze request %s failed: %s", path, e, exc_info=True)
            raise TransportError(f"Breeze request failed: {e}") from e

        data = self._decode(response, path)

        # the API answers with a bare string; the SDK shape wraps it in result
        if isinstance(data, dict) and "result" in data and data.get("success", True):
            data = data["result"]

        if isinstance(data, str) and data:
            return data

        if isinstance(data, dict) and data.get("message"):
            logger.warning(
                "Breeze refused %s (%s): %s", path, response.status_code, data["message"]
            )
            raise GatewayError(str(data["message"]), code=response.status_code)

        if response.status_code >= 500:
            raise TransportError(
                f"Breeze request failed with status {response.status_code}"
            )
        raise GatewayError(
            f"Unexpected response from Breeze: {data!r}", code=response.status_code
        )

    def _get(self, path: str, params: dict = None) -> Any:
        try:
            response = self.session.get(
                f"{self.api_url}{path}",
                headers=create_header(self.api_key),
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Breeze request %s failed: %s", path, e, exc_info=True)
            raise TransportError(f"Breeze request failed: {e}") from e

        if response.status_code != 200:
            logger.error(
                "Breeze request %s failed with status %s", path, response.status_code
            )
            raise TransportError(
                f"Request failed with status {response.status_code}"
            )
        return self._decode(response, path)

    @staticmethod
    def _decode(response: requests.Response, path: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            logger.error(
                "Breeze returned a non-JSON body for %s (status %s)",
                path,
                response.status_code,
            )
            raise TransportError(
                f"Invalid response from Breeze (status {response.status_code})"
            ) from e
