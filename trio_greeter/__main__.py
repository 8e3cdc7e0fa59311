import sys
import argparse
import logging
from typing import List, Optional

from trio_greeter import Greeter, run


def main(sys_args: Optional[List[str]]=None) -> None:
    parser = argparse.ArgumentParser(
        prog='trio_greeter',
        description='Answer every HTTP request on port 3000 with a greeting.',
    )
    parser.add_argument(
        '-v', '--verbose',
        dest='verbose',
        action='store_true',
        help='Log connection handling at DEBUG level',
    )

    args = parser.parse_args(sys.argv[1:] if sys_args is None else sys_args)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    run(Greeter)

if __name__ == '__main__':
    main()
