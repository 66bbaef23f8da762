#!/usr/bin/env python3
import getpass, pathlib, sys

from receipt_qa.util.keyloader import DEFAULT_CREDENTIALS_FILE, DEFAULT_FIELD, PLACEHOLDER_PREFIX


def main(env_file: pathlib.Path = DEFAULT_CREDENTIALS_FILE, ask=getpass.getpass) -> int:
    if env_file.exists():
        print(f"{env_file.name} already exists – nothing to do.")
        return 0

    key = ask(f"{DEFAULT_FIELD} (Gemini, from https://aistudio.google.com/app/apikey): ").strip()
    if not key or key.startswith(PLACEHOLDER_PREFIX):
        print(f"‼ {DEFAULT_FIELD} not valid – nothing written.")
        return 1

    env_file.write_text(f"{DEFAULT_FIELD}={key}\n")
    print(f"{env_file.name} written – you're ready to ask about receipts!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
