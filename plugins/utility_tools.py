"""Utility commands: calculator, QR codes, quotes, base64 and passwords."""

import base64
import binascii
import random
import secrets
import string
from urllib.parse import quote

from wabot.utils.arith import ArithmeticSyntaxError, evaluate


QR_API_URL = "https://api.qrserver.com/v1/create-qr-code/?size=300x300&data="

PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*"
PASSWORD_MIN = 4
PASSWORD_MAX = 50
PASSWORD_DEFAULT = 12

QUOTES = [
    ("The only way to do great work is to love what you do.", "Steve Jobs"),
    ("Innovation distinguishes between a leader and a follower.", "Steve Jobs"),
    ("Code is like humor. When you have to explain it, it's bad.", "Cory House"),
    ("First, solve the problem. Then, write the code.", "John Johnson"),
    ("Experience is the name everyone gives to their mistakes.", "Oscar Wilde"),
    ("Simplicity is the soul of efficiency.", "Austin Freeman"),
    ("Make it work, make it right, make it fast.", "Kent Beck"),
]


async def calc(transport, ctx, args):
    if not args:
        await transport.send_text(
            ctx.chat_id,
            "❌ Please provide a mathematical expression.\n"
            f"Example: {ctx.registry.prefix}calc 2 + 2 * 3",
        )
        return

    expression = " ".join(args)
    try:
        result = evaluate(expression)
    except ZeroDivisionError:
        await transport.send_text(ctx.chat_id, "❌ Division by zero.")
        return
    except ArithmeticSyntaxError as e:
        await transport.send_text(ctx.chat_id, f"❌ Invalid expression: {e}")
        return

    await transport.send_text(
        ctx.chat_id,
        f"🧮 *Calculator*\n\n📝 *Expression:* {expression}\n✅ *Result:* {result}",
    )


async def qr(transport, ctx, args):
    if not args:
        await transport.send_text(
            ctx.chat_id,
            "❌ Please provide text to generate QR code.\n"
            f"Example: {ctx.registry.prefix}qr Hello World",
        )
        return

    text = " ".join(args)
    await transport.send_image(
        ctx.chat_id,
        QR_API_URL + quote(text, safe=""),
        caption=f"📱 *QR Code Generated*\n\n📝 *Text:* {text}",
    )


async def random_quote(transport, ctx, args):
    text, author = random.choice(QUOTES)
    await transport.send_text(ctx.chat_id, f"💭 *Inspirational Quote*\n\n_{text}_\n\n— *{author}*")


async def base64_command(transport, ctx, args):
    usage = (
        "❌ Usage:\n"
        f"{ctx.registry.prefix}base64 encode <text>\n"
        f"{ctx.registry.prefix}base64 decode <text>"
    )
    if len(args) < 2:
        await transport.send_text(ctx.chat_id, usage)
        return

    action = args[0].lower()
    text = " ".join(args[1:])

    if action == "encode":
        encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
        await transport.send_text(
            ctx.chat_id,
            f"🔐 *Base64 Encoded*\n\n📝 *Original:* {text}\n🔒 *Encoded:* {encoded}",
        )
    elif action == "decode":
        try:
            decoded = base64.b64decode(text, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            await transport.send_text(ctx.chat_id, "❌ Invalid base64 input.")
            return
        await transport.send_text(
            ctx.chat_id,
            f"🔓 *Base64 Decoded*\n\n🔒 *Encoded:* {text}\n📝 *Decoded:* {decoded}",
        )
    else:
        await transport.send_text(ctx.chat_id, usage)


def generate_password(length: int = PASSWORD_DEFAULT) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


async def password(transport, ctx, args):
    length = PASSWORD_DEFAULT
    if args:
        try:
            length = int(args[0])
        except ValueError:
            length = 0

    if not PASSWORD_MIN <= length <= PASSWORD_MAX:
        await transport.send_text(
            ctx.chat_id,
            f"❌ Password length must be between {PASSWORD_MIN} and {PASSWORD_MAX} characters.",
        )
        return

    await transport.send_text(
        ctx.chat_id,
        f"🔑 *Generated Password*\n\n🔒 `{generate_password(length)}`\n\n"
        f"📏 Length: {length} characters\n"
        "⚠️ Keep this password secure!",
    )


def setup(registry):
    prefix = registry.prefix
    registry.register(
        "calc", calc,
        description="Calculate mathematical expressions",
        usage=f"{prefix}calc <expression>",
        category="utility",
    )
    registry.register(
        "qr", qr,
        description="Generate QR code for text",
        usage=f"{prefix}qr <text>",
        category="utility",
    )
    registry.register(
        "quote", random_quote,
        description="Get an inspirational quote",
        category="fun",
    )
    registry.register(
        "base64", base64_command,
        description="Encode or decode base64 text",
        usage=f"{prefix}base64 <encode|decode> <text>",
        category="utility",
    )
    registry.register(
        "password", password,
        description="Generate a secure password",
        usage=f"{prefix}password [length]",
        category="utility",
    )

    return {
        "name": "Utility Tools",
        "version": "1.0.0",
        "description": "Useful utility commands for everyday tasks",
        "author": "wabot",
        "commands": ["calc", "qr", "quote", "base64", "password"],
    }
