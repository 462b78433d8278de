#!/usr/bin/env python3

import logging
import sys

from Browser import Browser
from Terminal import Color

QUIT_COMMANDS = ['quit', 'exit', 'q']


def setup_logging(verbose=False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def fetch_all(browser, addresses):
    """Load each address in order without prompting. Returns the exit code."""
    failed = 0
    for i, raw in enumerate(addresses, 1):
        # argv에 UTF-8이 아닌 바이트가 있으면 surrogate로 들어오므로 표시용으로만 치환
        shown = raw.encode("utf8", "surrogateescape").decode("utf8", "replace")
        browser.terminal.print(f"\n{'=' * 60}\n", fg=Color.YELLOW)
        browser.terminal.print(f"🌎 Request #{i}: {shown}\n", fg=Color.YELLOW)
        browser.terminal.print(f"{'=' * 60}\n", fg=Color.YELLOW)
        if not browser.load(raw):
            failed += 1
    return 1 if failed else 0


def wait_for_enter(browser, read_line):
    browser.terminal.print("\nPress Enter to continue", fg=Color.YELLOW)
    read_line()


def interactive(browser, read_line=input):
    """Prompt for addresses until the user quits or input runs out."""
    while True:
        browser.terminal.clear()
        browser.terminal.print(browser.prompt(), fg=Color.YELLOW)
        try:
            raw = read_line().strip()
            if not raw:
                continue
            if raw.lower() in QUIT_COMMANDS:
                break

            browser.load(raw)
            wait_for_enter(browser, read_line)
        except (KeyboardInterrupt, EOFError):
            break
    browser.terminal.print("\n\n👋 Bye.\n", fg=Color.YELLOW)


def main(argv=None):
    args = sys.argv[1:] if argv is None else list(argv)

    verbose = False
    for flag in ('-v', '--verbose'):
        while flag in args:
            args.remove(flag)
            verbose = True
    unknown = [arg for arg in args if arg.startswith("-")]
    if unknown:
        print(f"Unknown option: {unknown[0]}", file=sys.stderr)
        print("Usage: gemini-browser [-v|--verbose] [ADDRESS ...]", file=sys.stderr)
        return 2
    setup_logging(verbose)

    browser = Browser()
    # 명령줄 인자로 주소를 받으면 순서대로 요청하고 종료
    # 예: python cli.py geminiprotocol.net/ gemini://example.org/docs
    if args:
        return fetch_all(browser, args)

    interactive(browser)
    return 0


if __name__ == "__main__":
    sys.exit(main())
