"""
交互式控制台。

通过 pyproject.toml 注册为 `chat-core` 命令。除斜杠命令外，每一行输入都
作为用户消息发送：

    /key <value>      保存 API 密钥
    /sys [text]       查看或设置 system prompt；`/sys -` 清空
    /model [id]       查看或选择模型
    /models           列出已知模型
    /effort [level]   查看或选择 reasoning effort
    /new              新建会话
    /quit             退出
"""

import sys
from typing import Optional

import click

from .api.service import ChatService
from .config.settings import settings
from .domain.exceptions import ValidationError
from .domain.models import REASONING_EFFORTS
from .infrastructure.storage.json_store import JsonKeyValueStore
from .providers import create_provider
from .providers.registry import MODEL_CATALOGUE, is_known_model
from .rendering.transcript import StreamTranscript


# `/sys -` 清空 system prompt
CLEAR_ARG = "-"


def build_service(storage_root: str) -> ChatService:
    return ChatService(
        backend=JsonKeyValueStore(root=storage_root),
        provider_client=create_provider(),
        renderer=StreamTranscript(),
    )


def _show_models(service: ChatService) -> None:
    current = service.preferences.model
    for info in MODEL_CATALOGUE:
        marker = "*" if info.model_id == current else " "
        click.echo(f" {marker} {info.model_id}")
    if not is_known_model(current):
        click.echo(f" * {current} (custom)")


def handle_line(service: ChatService, line: str) -> bool:
    """处理一行输入；返回 False 表示退出控制台。"""
    stripped = line.strip()
    if not stripped.startswith("/"):
        service.send(stripped)
        return True

    command, _, arg = stripped.partition(" ")
    arg = arg.strip()
    try:
        if command in ("/quit", "/exit"):
            return False
        if command == "/key":
            service.set_api_key(arg)
            click.echo("API key saved." if arg else "API key cleared.")
        elif command == "/sys":
            if not arg:
                click.echo(service.preferences.system_prompt or "(no system prompt)")
                return True
            if arg == CLEAR_ARG:
                arg = ""
            saved = "System prompt cleared" if not arg else "System prompt saved"
            if service.set_system_prompt(arg):
                click.echo(f"{saved}; conversation reset.")
            else:
                click.echo(f"{saved}; it applies from the next /new chat.")
        elif command == "/model":
            if arg:
                service.set_model(arg)
            click.echo(f"Model: {service.preferences.model}")
        elif command == "/models":
            _show_models(service)
        elif command == "/effort":
            if arg:
                service.set_reasoning_effort(arg)
            click.echo(f"Reasoning effort: {service.preferences.reasoning_effort}")
        elif command == "/new":
            service.new_chat()
            click.echo("New chat started.")
        else:
            click.secho(f"Unknown command: {command}", fg="red", err=True)
    except ValidationError as e:
        click.secho(f"Error: {e.message}", fg="red", err=True)
    return True


@click.command(help="Chat with a streaming chat-completion endpoint.")
@click.option("--storage-root", default=None, help="Directory for saved preferences and history.")
@click.option("--model", "model_id", default=None, help="Select a model before starting.")
@click.option(
    "--effort",
    type=click.Choice(REASONING_EFFORTS, case_sensitive=False),
    default=None,
    help="Select a reasoning effort before starting.",
)
def main(storage_root: Optional[str], model_id: Optional[str], effort: Optional[str]) -> None:
    """控制台入口：冷启动后逐行读取 stdin，直到 EOF 或 /quit。"""
    service = build_service(storage_root or settings.storage_root)
    try:
        if model_id:
            service.set_model(model_id)
        if effort:
            service.set_reasoning_effort(effort)
    except ValidationError as e:
        raise click.BadParameter(e.message)
    service.start()

    while True:
        click.echo("> ", nl=False)
        line = sys.stdin.readline()
        if not line:
            break
        if not handle_line(service, line):
            break


if __name__ == "__main__":
    main()
