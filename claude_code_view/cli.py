"CLI for claude-code-view."
import json
import logging

import click

from claude_code_view import parser, threads, tree, utils


@click.group()
@click.version_option()
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
def cli(verbose):
    "Browse Claude Code session transcripts as projects, conversations and threads"
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument(
    "claude_dir",
    type=click.Path(file_okay=False, dir_okay=True),
    envvar="CLAUDE_PROJECTS_DIR",
    required=False,
)
@click.option("--flat", is_flag=True, help="List projects without grouping by path")
@click.option("--json", "as_json", is_flag=True, help="Output the tree as JSON")
@click.option(
    "--include-agents",
    is_flag=True,
    help="Count agent-* session files",
)
def projects(claude_dir, flat, as_json, include_agents):
    "Show discovered projects grouped by their shared directories"
    if claude_dir is None:
        claude_dir = utils.DEFAULT_CLAUDE_DIR

    summaries = utils.discover_projects(claude_dir, include_agents=include_agents)
    if not summaries:
        raise click.ClickException(f"No projects with sessions found in {claude_dir}")

    nodes = tree.build_flat_list(summaries) if flat else tree.build_project_tree(summaries)
    if as_json:
        click.echo(json.dumps(nodes, indent=2))
        return
    for line in _render_tree(nodes):
        click.echo(line)


@cli.command()
@click.argument("session_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Output the parsed session as JSON")
def session(session_file, as_json):
    "Show the conversation turns of a single session file"
    try:
        parsed = parser.parse_session(session_file)
    except FileNotFoundError as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps(parsed, indent=2))
        return

    for message in parsed["messages"]:
        header = message["role"]
        if message.get("timestamp"):
            header += f" [{message['timestamp']}]"
        click.echo(click.style(header, bold=True))
        click.echo(message["content"])
        if message.get("tool_calls"):
            tools = ", ".join(
                f"{c['name']} x{c['count']}" for c in message["tool_calls"]
            )
            click.echo(f"  tools: {tools}")
        click.echo()

    meta = parsed["metadata"]
    click.echo(
        f"{meta['total_messages']:,} messages, {meta['tool_call_count']:,} tool calls"
    )


@cli.command(name="threads")
@click.argument("session_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--uuid", default=None, help="Only show the thread containing this message")
def threads_command(session_file, uuid):
    "Show thread nesting for the messages of a session file"
    records = list(utils.iter_thread_records(session_file))
    if uuid is not None:
        if not any(r["uuid"] == uuid for r in records):
            raise click.ClickException(f"No message with uuid {uuid} in {session_file}")
        chain = threads.get_thread_chain(uuid, records)
        ordered = [r["uuid"] for r in records if r["uuid"] in chain]
        click.echo(json.dumps(ordered, indent=2))
        return

    thread_map = threads.build_thread_map(records)
    click.echo(json.dumps(thread_map, indent=2))


def _render_tree(nodes):
    "Indented text lines for a project tree."
    for node in nodes:
        indent = "  " * node["depth"]
        if node["type"] == "group":
            yield f"{indent}{node['display_name']}/ ({node['session_count']})"
            yield from _render_tree(node.get("children", []))
        else:
            yield f"{indent}{node['display_name']} ({node['session_count']})"
