"""``volcboard`` command-line interface.

``serve`` runs the API server in the foreground.  ``tree`` and ``graph``
query a running server and print the queue hierarchy or its projection.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import click
import httpx

from volcboard.hierarchy.models import pod_map_key

DEFAULT_SERVER = "http://localhost:3001"
TIMEOUT = 10.0


def _get(server: str, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    url = f"{server.rstrip('/')}{path}"
    try:
        response = httpx.get(url, params=params, timeout=TIMEOUT)
    except httpx.HTTPError as exc:
        raise click.ClickException(f"cannot reach {url}: {exc}") from exc
    body = response.json() if response.headers.get("content-type", "").startswith("application/json") else {}
    if response.is_error:
        detail = body.get("detail") or response.text[:200]
        raise click.ClickException(f"{body.get('error', response.status_code)}: {detail}")
    return body


def render_tree(data: dict[str, Any]) -> list[str]:
    """Render a /hierarchical-queues body as indented text lines."""
    queues: dict[str, dict[str, Any]] = data.get("queues", {})
    pod_map: dict[str, list[dict[str, Any]]] = data.get("podMap", {})
    children: dict[str | None, list[str]] = {}
    for name, queue in queues.items():
        parent = queue.get("parent")
        children.setdefault(parent if parent in queues else None, []).append(name)

    lines: list[str] = []
    seen: set[str] = set()

    def _queue(name: str, depth: int) -> None:
        if name in seen:
            return
        seen.add(name)
        queue = queues[name]
        pad = "  " * depth
        flag = " [cycle]" if queue.get("inCycle") else ""
        lines.append(f"{pad}queue {name} ({queue.get('state') or '-'}, weight={queue.get('weight')}){flag}")
        for job in queue.get("jobs", []):
            lines.append(f"{pad}  job {job.get('namespace')}/{job['name']} [{job.get('state')}]")
            for task in job.get("tasks", []):
                lines.append(f"{pad}    task {task['name']} x{task.get('replicas')}")
                for pod in pod_map.get(pod_map_key(job["name"], task["name"]), []):
                    lines.append(f"{pad}      pod {pod['name']} [{pod.get('phase')}]")
        for child in children.get(name, []):
            _queue(child, depth + 1)

    for root in children.get(None, []):
        _queue(root, 0)
    # Queues that only appear inside a parent cycle have no root above them.
    for name in queues:
        _queue(name, 0)

    orphans = data.get("orphans", [])
    if orphans:
        lines.append("orphaned jobs:")
        for job in orphans:
            lines.append(f"  job {job.get('namespace')}/{job['name']} (queue {job.get('queue')!r} not found)")
    return lines


@click.group()
@click.version_option(package_name="volcboard")
def cli() -> None:
    """Dashboard backend for the Volcano batch scheduler."""


@cli.command()
def serve() -> None:
    """Run the API server (configured through VOLCBOARD_* variables)."""
    from volcboard.app import main

    asyncio.run(main())


@cli.command()
@click.option("--server", default=DEFAULT_SERVER, show_default=True, help="VolcBoard API base URL.")
def tree(server: str) -> None:
    """Print the queue → job → task → pod hierarchy."""
    data = _get(server, "/api/hierarchical-queues")
    if not data.get("totalCount") and not data.get("orphans"):
        click.echo("no queues found")
        return
    for line in render_tree(data):
        click.echo(line)


@cli.command()
@click.option("--server", default=DEFAULT_SERVER, show_default=True, help="VolcBoard API base URL.")
@click.option("--layout/--no-layout", default=False, help="Ask the server to lay the graph out.")
@click.option(
    "--direction",
    type=click.Choice(["DOWN", "UP", "RIGHT", "LEFT"], case_sensitive=False),
    default=None,
    help="Layout direction.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the raw node/edge document.")
def graph(server: str, layout: bool, direction: str | None, as_json: bool) -> None:
    """Print the projected node/edge graph."""
    params: dict[str, Any] = {"layout": str(layout).lower()}
    if direction:
        params["direction"] = direction.upper()
    data = _get(server, "/api/graph", params)
    if as_json:
        click.echo(json.dumps(data, indent=2))
        return
    counts: dict[str, int] = {}
    for node in data.get("nodes", []):
        counts[node["type"]] = counts.get(node["type"], 0) + 1
    summary = ", ".join(f"{kind}={counts.get(kind, 0)}" for kind in ("queue", "job", "task", "pod"))
    click.echo(f"nodes: {summary}")
    click.echo(f"edges: {len(data.get('edges', []))} (skipped dangling: {data.get('dangling', 0)})")
