from rich import print
from rich.pretty import pprint

from argot import *

registry = Registry("main", shell=True, fancy=True)

path = Positional("path", descr="file to read")
count = registry.register(KeyValue("count", "c", type=int, descr="how many lines"))
verbose = Flag("verbose", "v", descr="talk more")

registry.register(path)
registry.register(verbose)


if __name__ == '__main__':
    registry.parse()
    print(registry)
    pprint({
        "path": path.take_value(),
        "count": registry.take_value(count),
        "verbose": verbose.found(),
        "failures": registry.failures,
    })
