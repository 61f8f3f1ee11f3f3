from rich.pretty import pprint

from optable import *

__prog__ = "test"

force = Cell(False)
test = Cell(False)
count = Cell(0)
path = Cell()
perms = Cell(0)

parser = Parser([
    help_option(),
    Group("Basic options"),
    Boolean("f", "force", force, "force to do"),
    Boolean("t", "test", test, "test only"),
    String("p", "path", path, "path to read"),
    Integer("n", "num", count, "selected num"),
    Group("Bits options"),
    Bit(None, "read", perms, "read perm", data=1 << 0),
    Bit(None, "write", perms, "write perm", data=1 << 1),
    Bit(None, "exec", perms, "exec perm", data=1 << 2),
    End(),
], [
    "test [options] [[--] args]",
    "test [options]",
], shell=True, fancy=True).describe(
    "\nA brief description of what the program does and how it works.",
    "\nAdditional description of the program after the description of the arguments.",
)


if __name__ == '__main__':
    pprint({
        "arguments": parser.run(),
        "force": force,
        "test": test,
        "path": path,
        "num": count,
        "perms": perms,
    })
