import argparse
import asyncio
import json
import logging
import sys
from dnsenrich import DNSFilter, FilterConfig


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Run the DNS filter over newline delimited JSON records from stdin.'
    )
    parser.add_argument('--resolve', nargs='*', default=[], help='fields to forward resolve')
    parser.add_argument('--reverse', nargs='*', default=[], help='fields to reverse resolve')
    parser.add_argument('--action', choices=('append', 'replace'), default='append')
    parser.add_argument('--nameserver', default=None)
    parser.add_argument('--timeout', type=float, default=2.0)
    parser.add_argument('--concurrency', type=int, default=16)
    parser.add_argument('--verbose', '-v', action='store_true')
    return parser.parse_args(argv)


async def main() -> int:
    args = parse_args(sys.argv[1:])
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    dns_filter = DNSFilter(
        FilterConfig(
            resolve=tuple(args.resolve),
            reverse=tuple(args.reverse),
            action=args.action,
            nameserver=args.nameserver,
            timeout=args.timeout,
        )
    )

    records = [json.loads(line) for line in sys.stdin if line.strip()]
    try:
        results = await dns_filter.filter_many(records, concurrency=args.concurrency)
    finally:
        dns_filter.close()

    dropped = 0
    for result in results:
        if result.dropped:
            dropped += 1
            continue
        print(json.dumps(result.record))

    print(f'{len(results) - dropped} emitted, {dropped} dropped', file=sys.stderr)
    return 0


if __name__ == '__main__':
    sys.exit(
        asyncio.run(main())
    )
