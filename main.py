from rich.pretty import pprint

from argot import *

__prog__ = "argot-demo"

configuration = (
    Parser(shell=True, fancy=True)
    .command(
        "build", "b",
        flags=[Flag("verbose", "v"), Flag("release", "r", max=1)],
        arguments=[
            Argument("out", "o", metavar="DIR", required=True),
            Argument("jobs", "j", metavar="N", validator=str.isdigit, default="1"),
        ],
        descr="compile the project",
    )
    .command(
        "clean", "c",
        flags=[Flag("all", "a")],
        descr="remove build outputs",
    )
    .set_global_command("build")
    .build()
)


if __name__ == '__main__':
    pprint(configuration.invoke())
