"""
그룹 멤버 페치 유즈케이스

디렉터리 그룹의 멤버를 페이지 단위로 모두 가져와 DirectoryAccount로 정규화합니다.
- 후보 엔드포인트(직접 멤버 → 전이 멤버)를 순서대로 시도
- @odata.nextLink 커서를 따라 페이지네이션
- 429 응답 시 Retry-After 또는 지수 백오프로 재시도
"""

import asyncio
from typing import Awaitable, Callable, Dict, List, NamedTuple, Optional, Set

from ..domain.entities import DirectoryAccount, DirectoryPage, FetchStatistics
from ..domain.exceptions import (
    DirectoryApiError,
    DirectoryForbiddenError,
    DirectoryThrottledError,
    RetryLimitExceededError,
)
from ..domain.ports import DirectoryClientPort, LoggerPort

USER_ODATA_TYPE = "#microsoft.graph.user"
USER_SELECT_FIELDS = "id,mail,userPrincipalName,displayName,givenName,surname"


class MemberEndpoint(NamedTuple):
    """같은 논리 리소스(그룹 멤버)를 제공하는 엔드포인트 후보"""

    name: str
    path_template: str

    def resolve(self, group_id: str) -> str:
        return self.path_template.format(group_id=group_id)


MEMBER_ENDPOINTS = (
    MemberEndpoint("members", "/groups/{group_id}/members"),
    MemberEndpoint("transitiveMembers", "/groups/{group_id}/transitiveMembers"),
)


def _clean(value) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def is_user_record(record: Dict) -> bool:
    """
    개별 사용자 레코드인지 판별합니다.

    @odata.type이 있으면 사용자 타입인지 비교하고,
    없으면 ID가 있는 레코드를 사용자로 간주합니다.
    """
    odata_type = record.get("@odata.type")
    if odata_type:
        return odata_type == USER_ODATA_TYPE
    return bool(record.get("id"))


def resolve_email(record: Dict) -> Optional[str]:
    """메일 주소: mail → userPrincipalName"""
    return _clean(record.get("mail")) or _clean(record.get("userPrincipalName"))


def resolve_display_name(record: Dict) -> str:
    """표시 이름: displayName → 이름+성 → userPrincipalName → mail → 빈 문자열"""
    display_name = _clean(record.get("displayName"))
    if display_name:
        return display_name

    full_name = " ".join(
        part for part in (_clean(record.get("givenName")), _clean(record.get("surname"))) if part
    )
    if full_name:
        return full_name

    return _clean(record.get("userPrincipalName")) or _clean(record.get("mail")) or ""


class MemberFetchUseCase:
    """그룹 멤버 페치 유즈케이스"""

    def __init__(
        self,
        directory_client: DirectoryClientPort,
        logger: LoggerPort,
        max_retries: int = 5,
        base_delay_ms: int = 1000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        endpoints: tuple = MEMBER_ENDPOINTS,
    ):
        self.directory_client = directory_client
        self.logger = logger
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self._sleep = sleep
        self.endpoints = endpoints
        self.last_statistics = FetchStatistics()

    async def fetch_all_members(self, group_id: str, access_token: str) -> List[DirectoryAccount]:
        """
        그룹의 모든 멤버를 가져옵니다.

        첫 번째로 멤버를 반환한 엔드포인트의 결과를 사용합니다.

        Args:
            group_id: 디렉터리 그룹 ID
            access_token: Graph API 액세스 토큰

        Returns:
            메일 주소가 있는 사용자 계정 목록 (모든 엔드포인트가 비어 있으면 빈 목록)

        Raises:
            DirectoryForbiddenError: 마지막 엔드포인트에서 권한이 없는 경우
            RetryLimitExceededError: 한 페이지에서 스로틀링 재시도 한도를 넘은 경우
            DirectoryApiError: 마지막 엔드포인트에서 기타 오류가 발생한 경우
        """
        self.last_statistics = FetchStatistics()
        last_index = len(self.endpoints) - 1

        for index, endpoint in enumerate(self.endpoints):
            self.logger.info(f"멤버 조회 시작: {endpoint.name} (group_id={group_id})")

            try:
                accounts = await self._fetch_endpoint(endpoint, group_id, access_token)
            except RetryLimitExceededError:
                raise
            except DirectoryForbiddenError as e:
                permission_error = DirectoryForbiddenError(
                    f"그룹 멤버 조회 권한이 없습니다 ({endpoint.name}). "
                    f"애플리케이션에 GroupMember.Read.All 권한과 관리자 동의가 필요합니다: {e.message}",
                    resource=e.resource,
                )
                if index == last_index:
                    self.logger.error(permission_error.message)
                    raise permission_error from e
                self.logger.warning(f"{endpoint.name} 엔드포인트 접근 거부, 다음 엔드포인트 시도: {e.message}")
                continue
            except DirectoryApiError as e:
                if index == last_index:
                    self.logger.error(f"{endpoint.name} 엔드포인트 조회 실패: {e.message}")
                    raise
                self.logger.warning(f"{endpoint.name} 엔드포인트 조회 실패, 다음 엔드포인트 시도: {e.message}")
                continue

            if accounts:
                self.last_statistics.endpoint = endpoint.name
                self.logger.info(
                    f"멤버 조회 완료: {endpoint.name}에서 {len(accounts)}명",
                    endpoint=endpoint.name,
                    count=len(accounts),
                )
                return accounts

            self.logger.info(f"{endpoint.name} 엔드포인트에 멤버가 없음")

        self.logger.warning(f"모든 엔드포인트에서 멤버를 찾지 못했습니다: group_id={group_id}")
        return []

    async def _fetch_endpoint(
        self,
        endpoint: MemberEndpoint,
        group_id: str,
        access_token: str,
    ) -> List[DirectoryAccount]:
        """한 엔드포인트의 모든 페이지를 순회합니다."""
        base_path = endpoint.resolve(group_id)
        cursor: Optional[str] = None
        accounts: List[DirectoryAccount] = []
        seen_ids: Set[str] = set()

        while True:
            if cursor:
                page = await self._fetch_page(cursor, access_token, None)
            else:
                page = await self._fetch_page(base_path, access_token, USER_SELECT_FIELDS)

            # 첫 페이지 404만 빈 결과로 취급, 연속 페이지 404는 목록이 잘린 것
            if page is None:
                if cursor:
                    message = f"연속 페이지를 찾을 수 없습니다 (404): {endpoint.name}"
                    self.logger.error(message)
                    raise DirectoryApiError(message, status_code=404, resource=cursor)
                break

            self.last_statistics.pages_fetched += 1

            for record in page.items:
                account = await self._normalize(record, access_token)
                if account is None:
                    continue
                if account.id in seen_ids:
                    self.last_statistics.duplicates += 1
                    continue
                seen_ids.add(account.id)
                accounts.append(account)

            if not page.has_next():
                break
            cursor = page.next_cursor

        return accounts

    async def _fetch_page(
        self,
        resource_path: str,
        access_token: str,
        field_selector: Optional[str],
    ) -> Optional[DirectoryPage]:
        """스로틀링 시 같은 페이지를 재시도합니다."""
        retry_count = 0

        while True:
            try:
                return await self.directory_client.fetch(resource_path, access_token, field_selector)
            except DirectoryThrottledError as e:
                retry_count += 1
                if retry_count > self.max_retries:
                    self.logger.error(f"스로틀링 재시도 한도 초과: {self.max_retries}회")
                    raise RetryLimitExceededError(
                        f"스로틀링된 요청의 재시도 횟수를 초과했습니다 ({self.max_retries}회)",
                        attempts=retry_count - 1,
                    ) from e

                delay_ms = self.compute_delay_ms(retry_count, e.retry_after)
                self.last_statistics.throttle_retries += 1
                self.logger.warning(
                    f"요청 제한됨, {delay_ms}ms 후 재시도 ({retry_count}/{self.max_retries})",
                    delay_ms=delay_ms,
                    attempt=retry_count,
                )
                await self._sleep(delay_ms / 1000)

    def compute_delay_ms(self, retry_count: int, retry_after: Optional[int]) -> int:
        """Retry-After(초)가 있으면 우선, 없으면 지수 백오프"""
        if retry_after is not None:
            return retry_after * 1000
        return self.base_delay_ms * (2 ** retry_count)

    async def _normalize(self, record: Dict, access_token: str) -> Optional[DirectoryAccount]:
        """원본 레코드를 DirectoryAccount로 변환합니다. 대상이 아니면 None."""
        if not is_user_record(record):
            self.last_statistics.skipped_non_users += 1
            return None

        user_id = _clean(record.get("id"))
        if not user_id:
            self.last_statistics.skipped_non_users += 1
            return None

        email = resolve_email(record)
        display_name = resolve_display_name(record)

        if not email and not display_name:
            record = await self._lookup_details(user_id, record, access_token)
            email = resolve_email(record)
            display_name = resolve_display_name(record)

        if not email:
            self.last_statistics.dropped_without_email += 1
            self.logger.debug(f"메일 주소가 없는 사용자 제외: {user_id}")
            return None

        return DirectoryAccount(id=user_id, email=email, display_name=display_name)

    async def _lookup_details(self, user_id: str, record: Dict, access_token: str) -> Dict:
        """개별 사용자 조회로 누락된 필드를 보강합니다. 실패해도 원본을 반환합니다."""
        self.last_statistics.detail_lookups += 1

        try:
            details = await self.directory_client.get_user(user_id, access_token, USER_SELECT_FIELDS)
        except DirectoryApiError as e:
            self.last_statistics.detail_lookup_failures += 1
            self.logger.warning(f"사용자 상세 조회 실패: {user_id} - {e.message}")
            return record

        if not details:
            return record

        merged = dict(record)
        for key, value in details.items():
            if value and not merged.get(key):
                merged[key] = value
        return merged
