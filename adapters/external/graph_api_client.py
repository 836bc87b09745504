"""
Microsoft Graph 디렉터리 클라이언트 어댑터

Microsoft Graph API의 그룹/사용자 리소스 조회를 담당하는 어댑터입니다.
HTTP 상태 코드를 도메인 예외로 분류합니다.
- 404: 없음 (None 반환)
- 403: 권한 없음
- 429: 요청 제한 (Retry-After 포함)
"""

from typing import Dict, Optional

import httpx

from core.domain.entities import DirectoryPage, GroupInfo
from core.domain.exceptions import (
    DirectoryApiError,
    DirectoryForbiddenError,
    DirectoryNotFoundError,
    DirectoryThrottledError,
)
from core.domain.ports import DirectoryClientPort, LoggerPort


class GraphDirectoryClientAdapter(DirectoryClientPort):
    """Microsoft Graph 디렉터리 클라이언트 어댑터"""

    def __init__(
        self,
        logger: LoggerPort,
        base_url: str = "https://graph.microsoft.com/v1.0",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.logger = logger
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def fetch(
        self,
        resource_path: str,
        access_token: str,
        field_selector: Optional[str] = None,
    ) -> Optional[DirectoryPage]:
        """리소스 경로 또는 연속 커서(@odata.nextLink)로 한 페이지를 조회합니다."""
        is_cursor = self._is_cursor(resource_path)

        # 커서에는 서버가 쿼리를 이미 포함하고 있으므로 $select를 다시 붙이지 않음
        params = None
        if field_selector and not is_cursor:
            params = {"$select": field_selector}

        self.logger.debug(
            f"디렉터리 페이지 조회: {'커서' if is_cursor else resource_path}",
            resource=resource_path,
        )

        try:
            result = await self._get_json(resource_path, access_token, params)
        except DirectoryNotFoundError:
            self.logger.debug(f"리소스 없음 (404): {resource_path}")
            return None

        page = DirectoryPage(
            items=result.get("value") or [],
            next_cursor=result.get("@odata.nextLink"),
        )
        self.logger.debug(
            f"디렉터리 페이지 조회 성공: {len(page.items)}개 항목, 다음 페이지: {page.has_next()}"
        )
        return page

    async def get_group(self, group_id: str, access_token: str) -> Optional[GroupInfo]:
        """그룹 메타데이터를 조회합니다."""
        self.logger.debug(f"그룹 조회: group_id={group_id}")

        try:
            group = await self._get_json(f"/groups/{group_id}", access_token)
        except DirectoryNotFoundError:
            self.logger.error(f"그룹을 찾을 수 없음 (404): {group_id}")
            return None

        group_info = GroupInfo(
            id=group.get("id") or group_id,
            display_name=group.get("displayName") or group.get("mailNickname") or group_id,
        )
        self.logger.info(f"그룹: {group_info.display_name} ({group_info.id})")
        return group_info

    async def get_user(
        self,
        user_id: str,
        access_token: str,
        field_selector: Optional[str] = None,
    ) -> Optional[Dict]:
        """개별 사용자를 조회합니다."""
        self.logger.debug(f"사용자 조회: user_id={user_id}")

        params = {"$select": field_selector} if field_selector else None
        try:
            return await self._get_json(f"/users/{user_id}", access_token, params)
        except DirectoryNotFoundError:
            self.logger.debug(f"사용자를 찾을 수 없음 (404): {user_id}")
            return None

    def _is_cursor(self, resource_path: str) -> bool:
        return resource_path.startswith(("http://", "https://"))

    def _build_url(self, resource_path: str) -> str:
        if self._is_cursor(resource_path):
            return resource_path
        return f"{self.base_url}/{resource_path.lstrip('/')}"

    async def _get_json(
        self,
        resource_path: str,
        access_token: str,
        params: Optional[Dict] = None,
    ) -> Dict:
        """GET 요청 후 상태 코드를 분류하고 JSON 본문을 반환합니다."""
        url = self._build_url(resource_path)

        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, headers=headers, params=params)
        except httpx.HTTPError as e:
            error_msg = f"디렉터리 API 요청 실패: {resource_path} - {str(e)}"
            self.logger.error(error_msg)
            raise DirectoryApiError(error_msg, resource=resource_path) from e

        if response.status_code != 200:
            self._raise_for_status(response, resource_path)

        try:
            body = response.json()
        except ValueError as e:
            error_msg = f"디렉터리 API 응답 형식 오류: {resource_path} - JSON 본문이 아닙니다"
            self.logger.error(error_msg)
            raise DirectoryApiError(error_msg, status_code=200, resource=resource_path) from e

        if not isinstance(body, dict):
            error_msg = f"디렉터리 API 응답 형식 오류: {resource_path} - JSON 객체가 아닙니다"
            self.logger.error(error_msg)
            raise DirectoryApiError(error_msg, status_code=200, resource=resource_path)

        return body

    def _raise_for_status(self, response: httpx.Response, resource_path: str) -> None:
        """HTTP 오류 응답을 도메인 예외로 변환합니다."""
        status_code = response.status_code
        detail = self._extract_error_message(response)

        if status_code == 404:
            raise DirectoryNotFoundError(f"리소스를 찾을 수 없습니다: {detail}", resource=resource_path)

        if status_code == 403:
            self.logger.error(f"디렉터리 API 접근 거부 (403): {resource_path} - {detail}")
            raise DirectoryForbiddenError(f"접근이 거부되었습니다: {detail}", resource=resource_path)

        if status_code == 429:
            retry_after = self._parse_retry_after(response.headers.get("Retry-After"))
            self.logger.warning(
                f"디렉터리 API 요청 제한 (429): {resource_path}, retry-after={retry_after}",
                retry_after=retry_after,
            )
            raise DirectoryThrottledError(
                f"요청이 제한되었습니다: {detail}",
                retry_after=retry_after,
                resource=resource_path,
            )

        error_msg = f"디렉터리 API 오류: {status_code} - {detail}"
        self.logger.error(error_msg)
        raise DirectoryApiError(error_msg, status_code=status_code, resource=resource_path)

    @staticmethod
    def _parse_retry_after(value: Optional[str]) -> Optional[int]:
        """Retry-After 헤더(초 단위 정수)를 파싱합니다."""
        if value is None:
            return None
        try:
            seconds = int(value.strip())
        except ValueError:
            return None
        return seconds if seconds >= 0 else None

    @staticmethod
    def _extract_error_message(response: httpx.Response) -> str:
        """Graph 오류 본문({"error": {"code", "message"}})에서 메시지를 추출합니다."""
        try:
            body = response.json()
        except ValueError:
            return response.text or str(response.status_code)

        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            code = error.get("code")
            message = error.get("message")
            if code and message:
                return f"{code}: {message}"
            return message or code or response.text
        return response.text or str(response.status_code)
