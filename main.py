"""
디렉터리 그룹 멤버 동기화 시스템

메인 진입점 파일입니다.
"""

import typer
from rich.console import Console

from adapters.cli.db_commands import app as db_app
from adapters.cli.sync_commands import app as sync_app
from config.adapters import get_config

# 메인 CLI 앱
app = typer.Typer(
    name="directory-sync",
    help="Microsoft Entra ID 그룹 멤버 동기화 시스템",
    no_args_is_help=True,
)

# 서브 명령어 추가
app.add_typer(sync_app, name="sync")
app.add_typer(db_app, name="db")

console = Console()


def _mask(value) -> str:
    if not value:
        return "[dim]미설정[/dim]"
    return value[:8] + "..."


@app.command("version")
def show_version():
    """버전 정보를 표시합니다."""
    console.print("[bold]Microsoft Entra ID 그룹 멤버 동기화 시스템[/bold]")
    console.print("버전: 1.0.0")


@app.command("config")
def show_config():
    """현재 설정을 표시합니다."""
    try:
        config = get_config()

        console.print("[bold]현재 설정[/bold]")
        console.print(f"환경: {config.get_environment()}")
        console.print(f"디버그 모드: {config.is_debug()}")
        console.print(f"데이터베이스 URL: {config.get_database_url()}")
        console.print(f"Azure 클라이언트 ID: {_mask(config.get_azure_client_id())}")
        console.print(f"Azure 테넌트 ID: {_mask(config.get_azure_tenant_id())}")
        console.print(f"Graph API URL: {config.get_graph_base_url()}")
        console.print(f"기본 동기화 그룹: {config.get_sync_group_id() or '-'}")
        console.print(f"최대 재시도 횟수: {config.get_sync_max_retries()}")
        console.print(f"백오프 기본 지연(ms): {config.get_sync_base_delay_ms()}")
        console.print(f"로그 레벨: {config.get_log_level()}")

    except Exception as e:
        console.print(f"[red]오류: {str(e)}[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
