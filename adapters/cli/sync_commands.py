"""
디렉터리 동기화 CLI 명령어

DirectorySyncUseCase를 CLI 명령으로 노출하는 어댑터입니다.
"""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from adapters.db.database import initialize_database
from adapters.factory import get_adapter_factory

# CLI 앱 생성
app = typer.Typer(name="sync", help="디렉터리 그룹 멤버 동기화 명령어")
console = Console()


def _format_time(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else "-"


@app.command("run")
def run_sync(
    group_id: Optional[str] = typer.Option(None, "--group-id", "-g", help="동기화할 그룹 ID (생략 시 설정된 그룹)"),
    token: Optional[str] = typer.Option(
        None, "--token", envvar="GRAPH_FALLBACK_TOKEN", help="앱 자격 증명이 없을 때 사용할 사용자 토큰"
    ),
):
    """그룹 멤버를 로컬 캐시에 동기화합니다."""

    async def _run():
        factory = get_adapter_factory()
        config = factory.get_config()
        db_adapter = initialize_database(config)
        await db_adapter.initialize()

        try:
            await db_adapter.create_tables()

            async with db_adapter.get_session() as session:
                usecase = factory.create_directory_sync_usecase(session)

                target_group = group_id or config.get_sync_group_id()
                if target_group:
                    console.print(f"[blue]그룹 동기화 중: {target_group}[/blue]")
                    result = await usecase.sync_group_detailed(target_group, token)
                else:
                    console.print("[blue]설정된 그룹 동기화 중...[/blue]")
                    result = await usecase.sync_configured_group(token)

                statistics = usecase.member_fetcher.last_statistics

            console.print("[green]✓ 동기화가 완료되었습니다![/green]")

            table = Table(title="동기화 결과")
            table.add_column("항목", style="cyan")
            table.add_column("값", style="green")
            table.add_row("가져온 멤버", str(result.fetched))
            table.add_row("동기화 성공", str(result.synced))
            table.add_row("동기화 실패", str(result.failed))
            table.add_row("삭제된 항목", str(result.deleted))
            table.add_row("사용한 엔드포인트", statistics.endpoint or "-")
            table.add_row("조회한 페이지", str(statistics.pages_fetched))
            table.add_row("스로틀링 재시도", str(statistics.throttle_retries))
            table.add_row("마지막 동기화", _format_time(result.last_synced_at))
            console.print(table)

        except Exception as e:
            console.print(f"[red]오류: {str(e)}[/red]")
            raise typer.Exit(1)
        finally:
            await db_adapter.close()

    asyncio.run(_run())


@app.command("configure")
def configure_group(
    group_id: str = typer.Argument(..., help="동기화 대상 그룹 ID"),
    token: Optional[str] = typer.Option(
        None, "--token", envvar="GRAPH_FALLBACK_TOKEN", help="앱 자격 증명이 없을 때 사용할 사용자 토큰"
    ),
):
    """동기화 대상 그룹을 설정합니다."""

    async def _configure():
        factory = get_adapter_factory()
        db_adapter = initialize_database(factory.get_config())
        await db_adapter.initialize()

        try:
            await db_adapter.create_tables()

            async with db_adapter.get_session() as session:
                usecase = factory.create_directory_sync_usecase(session)
                marker = await usecase.configure_group(group_id, token)

            console.print("[green]✓ 동기화 대상 그룹이 설정되었습니다![/green]")
            console.print(f"그룹 ID: {marker.group_id}")
            console.print(f"그룹 이름: {marker.group_name}")

        except Exception as e:
            console.print(f"[red]오류: {str(e)}[/red]")
            raise typer.Exit(1)
        finally:
            await db_adapter.close()

    asyncio.run(_configure())


@app.command("status")
def show_status():
    """동기화 설정과 마지막 동기화 시각을 조회합니다."""

    async def _status():
        factory = get_adapter_factory()
        db_adapter = initialize_database(factory.get_config())
        await db_adapter.initialize()

        try:
            await db_adapter.create_tables()

            async with db_adapter.get_session() as session:
                usecase = factory.create_directory_sync_usecase(session)
                marker = await usecase.get_sync_status()
                cached_count = await usecase.cache_repository.count_entries()

            if marker is None or not marker.is_configured():
                console.print("[yellow]동기화 대상 그룹이 설정되지 않았습니다.[/yellow]")
                console.print("[dim]sync configure <group-id> 명령으로 설정하세요.[/dim]")
                if marker is None:
                    return

            table = Table(title="동기화 상태")
            table.add_column("항목", style="cyan")
            table.add_column("값", style="green")
            table.add_row("그룹 ID", marker.group_id or "-")
            table.add_row("그룹 이름", marker.group_name or "-")
            table.add_row("마지막 동기화", _format_time(marker.last_synced_at))
            table.add_row("캐시된 계정 수", str(cached_count))
            console.print(table)

        except Exception as e:
            console.print(f"[red]오류: {str(e)}[/red]")
            raise typer.Exit(1)
        finally:
            await db_adapter.close()

    asyncio.run(_status())


if __name__ == "__main__":
    app()
