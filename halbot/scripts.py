"""
Built-in Scripts

Handlers every robot started from the CLI gets.
"""

from halbot.robot.handler import Handler, respond
from halbot.robot.message import Response


@respond(r"ping$", usage="ping - Reply with PONG")
async def ping(res: Response) -> None:
    await res.send("PONG")


@respond(r"echo (.+)$", usage="echo <text> - Reply with <text>")
async def echo(res: Response) -> None:
    await res.reply(res.match[1])


@respond(r"users$", usage="users - List the users the robot knows")
async def users(res: Response) -> None:
    known = res.robot.users.all()
    if not known:
        await res.send("I don't know anybody yet.")
        return

    lines = []
    for user in known:
        if user.mention_name:
            lines.append(f"{user.name} (@{user.mention_name})")
        else:
            lines.append(user.name)
    await res.send("\n".join(lines))


@respond(r"help$", usage="help - Show this help")
async def help_(res: Response) -> None:
    usages = sorted(h.usage for h in res.robot.handlers() if h.usage)
    await res.send("Commands:\n" + "\n".join(usages))


BUILTIN_HANDLERS: list[Handler] = [ping, echo, users, help_]
