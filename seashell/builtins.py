import os
import time
from datetime import datetime

from seashell.registry import CommandRegistry


def echo(ctx, args):
    print(" ".join(args), file=ctx.stdout)
    return True


def exit_shell(ctx, args):
    return False


def type_(ctx, args):
    for target in args:
        if ctx.registry.is_builtin(target):
            print(f"{target} is a shell builtin", file=ctx.stdout)
            continue
        location = ctx.resolver.find(target)
        if location:
            print(f"{target} is {location}", file=ctx.stdout)
        else:
            print(f"{target}: not found", file=ctx.stderr)
    return True


def which(ctx, args):
    for target in args:
        if ctx.registry.is_builtin(target):
            print(f"{target}: shell builtin", file=ctx.stdout)
            continue
        location = ctx.resolver.find(target)
        if location:
            print(location, file=ctx.stdout)
        else:
            print(f"which: no {target} in PATH", file=ctx.stderr)
    return True


def pwd(ctx, args):
    print(os.getcwd(), file=ctx.stdout)
    return True


def cd(ctx, args):
    target = args[0] if args else "~"
    try:
        os.chdir(os.path.expanduser(target))
    except FileNotFoundError:
        print(f"cd: {target}: No such file or directory", file=ctx.stderr)
    except OSError as e:
        print(f"cd: {target}: {e.strerror}", file=ctx.stderr)
    return True


def history(ctx, args):
    limit = 0
    if args:
        try:
            limit = int(args[0])
        except ValueError:
            pass
    for position, entry in ctx.history.entries(limit):
        print(f"{position:>5}  {entry}", file=ctx.stdout)
    return True


def cat(ctx, args):
    if not args:
        ctx.stdout.write(ctx.stdin.read())
        return True
    for filename in args:
        try:
            with open(filename, encoding="utf-8", errors="replace") as f:
                ctx.stdout.write(f.read())
        except FileNotFoundError:
            print(f"cat: {filename}: No such file or directory", file=ctx.stderr)
        except OSError as e:
            print(f"cat: {filename}: {e.strerror}", file=ctx.stderr)
    return True


def true(ctx, args):
    return True


# exit codes are not surfaced, so false only differs from true by name
false = true


def env(ctx, args):
    wanted = {name.casefold() for name in args}
    for key, value in os.environ.items():
        if not wanted or key.casefold() in wanted:
            print(f"{key}={value}", file=ctx.stdout)
    return True


def whoami(ctx, args):
    username = os.environ.get("USERNAME") or os.environ.get("USER")
    if username:
        print(username, file=ctx.stdout)
    else:
        print("whoami: cannot find name for user", file=ctx.stderr)
    return True


DATE_FORMAT = "%a %b %d %H:%M:%S %Y"


def date(ctx, args):
    fmt = DATE_FORMAT
    if args and args[0].startswith("+"):
        fmt = args[0][1:]
    print(datetime.now().strftime(fmt), file=ctx.stdout)
    return True


MAX_SLEEP_SECONDS = 3600


def sleep(ctx, args):
    if not args:
        print("sleep: missing operand", file=ctx.stderr)
        return True
    try:
        seconds = int(args[0])
    except ValueError:
        seconds = -1
    if not 0 <= seconds <= MAX_SLEEP_SECONDS:
        print(f"sleep: invalid time interval '{args[0]}'", file=ctx.stderr)
        return True
    time.sleep(seconds)
    return True


def clear(ctx, args):
    ctx.stdout.write("\033[H\033[2J")
    return True


BUILTINS = {
    "cat": cat,
    "cd": cd,
    "clear": clear,
    "cls": clear,
    "date": date,
    "echo": echo,
    "env": env,
    "exit": exit_shell,
    "false": false,
    "history": history,
    "pwd": pwd,
    "sleep": sleep,
    "true": true,
    "type": type_,
    "which": which,
    "whoami": whoami,
}


def register_builtins(registry):
    for name, handler in BUILTINS.items():
        registry.register(name, handler)
    return registry


def create_registry():
    return register_builtins(CommandRegistry())
