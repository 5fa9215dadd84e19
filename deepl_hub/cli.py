# deepl_hub/cli.py
"""
deepl-hub 的命令行接口 (CLI)。

提供查询用量、翻译文本、翻译文档、恢复中断的文档任务以及等待术语表就绪等入口。
"""

import asyncio
from collections.abc import Awaitable
from pathlib import Path
from typing import Optional, TypeVar

import structlog
import typer
from rich.console import Console
from rich.table import Table

from deepl_hub import __version__
from deepl_hub.config import DeepLHubConfig
from deepl_hub.core.exceptions import DeepLHubError, DocumentTranslationError
from deepl_hub.core.types import (
    DocumentHandle,
    DocumentTranslateOptions,
    Formality,
    TextTranslateOptions,
)
from deepl_hub.logging_config import setup_logging
from deepl_hub.translator import Translator

app = typer.Typer(
    name="deepl-hub",
    help="以异步方式调用翻译服务：文本翻译、文档翻译与术语表管理。",
    add_completion=False,
)

console = Console()
log = structlog.get_logger("deepl_hub.cli")

T = TypeVar("T")


class State:
    """用于在 Typer 上下文中传递共享对象的容器。"""

    config: DeepLHubConfig


def _run(coro: Awaitable[T]) -> T:
    """运行一个协程；库内的预期错误统一转为退出码 1。"""
    try:
        return asyncio.run(coro)  # type: ignore[arg-type]
    except DeepLHubError as e:
        log.error("命令执行失败。", error=str(e), error_type=type(e).__name__)
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=1)
    except FileExistsError as e:
        console.print(f"[red]❌ 输出文件已存在: {e.filename}[/red]")
        raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", help="显示版本号并退出。", is_eager=True
    ),
) -> None:
    """主回调函数，在任何命令执行前加载配置并初始化日志。"""
    if version:
        console.print(f"deepl-hub version: [bold green]{__version__}[/bold green]")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()

    try:
        config = DeepLHubConfig()
        setup_logging(log_level=config.logging.level, log_format=config.logging.format)
    except Exception as e:
        console.print("[bold red]❌ 启动失败：无法加载配置或初始化日志。[/bold red]")
        console.print(f"[dim]{e}[/dim]")
        raise typer.Exit(code=1) from e
    ctx.obj = State()
    ctx.obj.config = config


@app.command()
def usage(ctx: typer.Context) -> None:
    """显示当前计费周期的用量。"""

    async def _usage() -> None:
        async with Translator(config=ctx.obj.config) as translator:
            result = await translator.get_usage()

        table = Table(title="账户用量")
        table.add_column("类别", style="cyan")
        table.add_column("已用", justify="right")
        table.add_column("上限", justify="right")
        for label, detail in (
            ("字符", result.character),
            ("文档", result.document),
            ("团队文档", result.team_document),
        ):
            if detail is not None:
                table.add_row(label, str(detail.count), str(detail.limit))
        console.print(table)
        if result.any_limit_reached:
            console.print("[yellow]⚠️ 已达到用量上限。[/yellow]")

    _run(_usage())


@app.command()
def text(
    ctx: typer.Context,
    content: str = typer.Argument(..., help="要翻译的原文。"),
    target_lang: str = typer.Option(..., "--target", "-t", help="目标语言代码。"),
    source_lang: Optional[str] = typer.Option(
        None, "--source", "-s", help="源语言代码，省略时自动检测。"
    ),
    formality: Formality = typer.Option(Formality.DEFAULT, "--formality"),
) -> None:
    """翻译一段文本并输出译文。"""

    async def _translate() -> None:
        async with Translator(config=ctx.obj.config) as translator:
            result = await translator.translate_text(
                content,
                target_lang,
                source_lang=source_lang,
                options=TextTranslateOptions(formality=formality),
            )
        console.print(result.text)

    _run(_translate())


@app.command()
def document(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="输入文档。"),
    output_path: Path = typer.Argument(..., help="输出文档，不能已存在。"),
    target_lang: str = typer.Option(..., "--target", "-t", help="目标语言代码。"),
    source_lang: Optional[str] = typer.Option(None, "--source", "-s"),
    formality: Formality = typer.Option(Formality.DEFAULT, "--formality"),
    glossary_id: Optional[str] = typer.Option(None, "--glossary", "-g"),
) -> None:
    """上传文档、等待翻译完成并下载结果。"""
    options = DocumentTranslateOptions(glossary_id=glossary_id, formality=formality)

    async def _translate() -> None:
        async with Translator(config=ctx.obj.config) as translator:
            try:
                await translator.translate_document_file(
                    input_path,
                    output_path,
                    target_lang,
                    source_lang=source_lang,
                    options=options,
                )
            except DocumentTranslationError as e:
                _report_partial_failure(e)
                raise

    _run(_translate())
    console.print(f"[green]✅ 文档已翻译并保存到 {output_path}[/green]")


@app.command()
def resume(
    ctx: typer.Context,
    document_id: str = typer.Argument(..., help="上传时返回的文档 ID。"),
    document_key: str = typer.Argument(..., help="上传时返回的文档密钥。"),
    output_path: Path = typer.Argument(..., help="输出文档，不能已存在。"),
) -> None:
    """继续等待一个已上传的文档任务并下载结果，无需重新上传。"""
    handle = DocumentHandle(document_id=document_id, document_key=document_key)

    async def _resume() -> None:
        async with Translator(config=ctx.obj.config) as translator:
            await translator.translate_document_wait_until_done(handle)
            await translator.translate_document_download_file(handle, output_path)

    _run(_resume())
    console.print(f"[green]✅ 文档已下载到 {output_path}[/green]")


@app.command("glossary-wait")
def glossary_wait(
    ctx: typer.Context,
    glossary_id: str = typer.Argument(..., help="术语表 ID。"),
) -> None:
    """等待术语表就绪。"""

    async def _wait() -> None:
        async with Translator(config=ctx.obj.config) as translator:
            info = await translator.wait_until_glossary_ready(glossary_id)
        console.print(
            f"[green]✅ 术语表 '{info.name}' 已就绪 ({info.entry_count} 条词条)。[/green]"
        )

    _run(_wait())


def _report_partial_failure(error: DocumentTranslationError) -> None:
    """打印 resume 命令所需的文档 ID 与密钥。密钥只输出到终端，不写入日志。"""
    handle = error.document_handle
    if handle is not None:
        console.print(
            "[yellow]文档已上传，可使用以下命令继续:\n"
            f"  deepl-hub resume {handle.document_id} "
            f"{handle.document_key.get_secret_value()} <OUTPUT>[/yellow]"
        )
