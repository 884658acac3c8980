"""Verb handlers and the dispatch table for devvm."""

from __future__ import annotations

import shlex
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, NamedTuple, Optional

from devvm.constants import (
    COMPOSE_OVERRIDE_NAME,
    COMPOSE_OVERRIDE_TEMPLATE,
    SERVICE_HOST_ENV,
    VAGRANTFILE_TEMPLATE,
)
from devvm.environment import check_environment, require_empty_directory, write_marker
from devvm.exceptions import DelegatedCommandError, UsageError
from devvm.executor import VagrantExecutor
from devvm.logs import LogStreamer
from devvm.models import EnvConfig
from devvm.utils import log

STOP_SCRIPT = "./scripts/stop.sh"
CONFIGURE_SCRIPT = "./scripts/configure.sh"
APP_SCRIPT = "./scripts/app.sh"


@dataclass
class Context:
    cfg: EnvConfig
    cwd: Path
    executor: VagrantExecutor


class Command(NamedTuple):
    name: str
    handler: Callable[[Context, List[str]], int]
    needs_marker: bool
    usage: str
    summary: str


def _checked(rc: int, what: str) -> None:
    if rc != 0:
        raise DelegatedCommandError(f"{what} failed with status {rc}", rc)


def validate_arguments(verb: str, args: List[str]) -> Command:
    """Return the command for ``verb``; raise ``UsageError`` before anything runs."""
    command = COMMANDS.get(verb)
    if command is None:
        raise UsageError(f"Unknown command '{verb}'")
    if verb in REQUIRES_ARGUMENT and (not args or not args[0].strip()):
        raise UsageError(f"Usage: devvm {command.usage}")
    return command


def cmd_init(ctx: Context, args: List[str]) -> int:
    cfg = ctx.cfg
    root = ctx.cwd
    require_empty_directory(root)

    shutil.copyfile(VAGRANTFILE_TEMPLATE, root / "Vagrantfile")
    log("INFO", "Wrote Vagrantfile")

    for plugin in cfg.plugins():
        log("INFO", f"Installing Vagrant plugin {plugin}")
        _checked(ctx.executor.vagrant("plugin", "install", plugin), f"vagrant plugin install {plugin}")

    for repo in cfg.repositories:
        log("INFO", f"Cloning {repo.name} from {repo.url}")
        _checked(ctx.executor.call(["git", "clone", repo.url, repo.name]), f"git clone {repo.url}")

    override = root / cfg.compose_repository / COMPOSE_OVERRIDE_NAME
    shutil.copyfile(COMPOSE_OVERRIDE_TEMPLATE, override)
    log("INFO", f"Wrote {override.relative_to(root)}")

    write_marker(root)
    log("SUCCESS", f"Environment ready in {root}. Start the VM with 'devvm boot'.")
    return 0


def cmd_boot(ctx: Context, args: List[str]) -> int:
    return ctx.executor.vagrant("up", "--provider", ctx.cfg.provider)


def cmd_shutdown(ctx: Context, args: List[str]) -> int:
    rc = ctx.executor.remote(STOP_SCRIPT)
    if rc != 0:
        log("WARN", f"Stop script exited with status {rc}; halting anyway")
    return ctx.executor.vagrant("halt")


def cmd_destroy(ctx: Context, args: List[str]) -> int:
    log("WARN", "Destroying the VM. Everything stored inside it (databases, volumes, images) will be lost.")
    return ctx.executor.vagrant("destroy", "-f")


def cmd_containers(ctx: Context, args: List[str]) -> int:
    return ctx.executor.remote("docker compose config --services")


def rebuild_command(name: str, service_host: str) -> str:
    service = shlex.quote(name)
    steps = [
        f"docker compose build {service}",
        f"docker compose stop {service}",
        f"docker compose rm -f {service}",
        f"{SERVICE_HOST_ENV}={shlex.quote(service_host)} docker compose up -d {service}",
    ]
    return " && ".join(steps)


def cmd_rebuild(ctx: Context, args: List[str]) -> int:
    return ctx.executor.remote(rebuild_command(args[0], ctx.cfg.service_host))


def reload_command() -> str:
    return " && ".join(["docker compose stop", CONFIGURE_SCRIPT, "docker compose up -d"])


def cmd_reload(ctx: Context, args: List[str]) -> int:
    return ctx.executor.remote(reload_command())


def app_command(args: List[str]) -> str:
    if not args:
        return APP_SCRIPT
    return f"{APP_SCRIPT} {shlex.join(args)}"


def cmd_app(ctx: Context, args: List[str]) -> int:
    return ctx.executor.remote(app_command(args))


def cmd_logs(ctx: Context, args: List[str]) -> int:
    streamer = LogStreamer(ctx.executor, tail=ctx.cfg.log_tail)
    streamer.run()
    return 0


def cmd_run(ctx: Context, args: List[str]) -> int:
    return ctx.executor.remote(" ".join(args))


def cmd_ssh(ctx: Context, args: List[str]) -> int:
    return ctx.executor.remote('exec "$SHELL" -l', tty=True)


def cmd_status(ctx: Context, args: List[str]) -> int:
    return ctx.executor.vagrant("status")


COMMANDS: Dict[str, Command] = {
    cmd.name: cmd
    for cmd in (
        Command("init", cmd_init, False, "init", "Create a new environment in the current (empty) directory"),
        Command("boot", cmd_boot, True, "boot", "Start the VM"),
        Command("shutdown", cmd_shutdown, True, "shutdown", "Stop the services and halt the VM"),
        Command("destroy", cmd_destroy, True, "destroy", "Delete the VM (irreversible)"),
        Command("containers", cmd_containers, True, "containers", "List the configured services"),
        Command("rebuild", cmd_rebuild, True, "rebuild <container>", "Rebuild and restart one service"),
        Command("reload", cmd_reload, True, "reload", "Stop, reconfigure and restart all services"),
        Command("app", cmd_app, True, "app [args...]", "Pass arguments to the app management script"),
        Command("logs", cmd_logs, True, "logs", "Follow service logs, reconnecting when the stream ends"),
        Command("run", cmd_run, True, "run <cmd>", "Run a shell command inside the VM"),
        Command("ssh", cmd_ssh, True, "ssh", "Open a shell inside the VM"),
        Command("status", cmd_status, True, "status", "Show the VM state"),
    )
}

REQUIRES_ARGUMENT = {"rebuild", "run"}


def dispatch(
    cfg: EnvConfig,
    verb: str,
    args: List[str],
    cwd: Optional[Path] = None,
    executor_factory: Callable[..., VagrantExecutor] = VagrantExecutor,
) -> int:
    """Run one verb; raises ``UsageError`` for unknown verbs or missing arguments."""
    command = validate_arguments(verb, args)
    cwd = cwd or Path.cwd()
    if command.needs_marker:
        root = check_environment(cwd)
    else:
        root = cwd
    executor = executor_factory(cfg, root=root)
    return command.handler(Context(cfg=cfg, cwd=cwd, executor=executor), args)
