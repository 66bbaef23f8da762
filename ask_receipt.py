# ask_receipt.py
"""
Ask Gemini a question about a receipt / invoice image.

    python ask_receipt.py --image_path receipt.jpg --question "What is the total?"
    python ask_receipt.py --use_camera true --question "Who is the vendor?"
    python ask_receipt.py --config_path ask.yaml

Leave out --question to ask several questions about the same image.
"""
import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable

import draccus

from receipt_qa.acquisition import OpenCVCamera
from receipt_qa.config import AppConfig
from receipt_qa.models import load_vlm
from receipt_qa.permissions import ConsoleAuthorizer
from receipt_qa.session import ReceiptSession, SubmissionStatus
from receipt_qa.util.keyloader import try_load_credential


def build_session(cfg: AppConfig, api_key: str, prompt: Callable[[str], str] = input) -> ReceiptSession:
    vlm = load_vlm(
        cfg.model.family,
        cfg.model.model_id,
        api_key,
        max_output_tokens=cfg.model.max_output_tokens,
        temperature=cfg.model.temperature,
    )
    return ReceiptSession(
        vlm,
        authorizer=ConsoleAuthorizer(cfg.camera.permission, prompt=prompt),
        camera=OpenCVCamera(cfg.camera.device_index, prompt=prompt),
        discard_stale=cfg.discard_stale,
    )


async def acquire(cfg: AppConfig, session: ReceiptSession) -> bool:
    if cfg.use_camera:
        if await session.open_camera():
            return True
        if session.state.permission_error:
            print("‼", session.state.permission_error)
            session.dismiss_alert()
        else:
            print("‼ no image captured")
        return False

    if not cfg.image_path:
        print("‼ pass --image_path or --use_camera true")
        return False
    session.present_picker()
    if not await session.pick_from_library(cfg.image_path):
        print(f"‼ could not load image {cfg.image_path}")
        return False
    return True


async def ask(session: ReceiptSession, question: str) -> int:
    session.set_question(question)
    if not session.can_submit:
        print("‼ a question and an image are both required")
        return 2
    answer = await session.submit_and_wait()
    if session.state.status is SubmissionStatus.FAILED:
        print("‼ generation failed:", session.state.generation_error)
        return 1
    print(answer)
    return 0


async def run(cfg: AppConfig, session: ReceiptSession, prompt: Callable[[str], str] = input) -> int:
    if not await acquire(cfg, session):
        return 1
    if cfg.question:
        return await ask(session, cfg.question)

    # interactive: one question per line until a blank line / EOF
    code = 0
    while True:
        try:
            question = (await asyncio.to_thread(prompt, "Question (blank to quit): ")).strip()
        except EOFError:
            break
        if not question:
            break
        code = await ask(session, question) or code
    return code


@draccus.wrap()
def main(cfg: AppConfig):
    logging.basicConfig(level=cfg.log_level.upper(), format="%(levelname)s %(name)s %(message)s")

    result = try_load_credential(
        cfg.credentials_file, cfg.credentials_field, allow_env=cfg.credentials_from_env
    )
    if not result.ok:
        raise SystemExit(
            f"\n‼ {result.error}\n"
            f"   • Run `python init_keys.py` to create {Path(cfg.credentials_file).name}\n"
        )

    session = build_session(cfg, result.credential)
    code = asyncio.run(run(cfg, session))
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
