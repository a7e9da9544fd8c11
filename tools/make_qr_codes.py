from __future__ import annotations

import argparse
import re
from pathlib import Path
from typing import List, Sequence
from urllib.parse import quote

import qrcode

from chefbot.config import Settings, settings

PLATFORMS = ("whatsapp", "telegram", "web")

OUT_DIR = Path(__file__).resolve().parents[1] / "qrcodes"


def table_url(table_number: int, platform: str, cfg: Settings = settings) -> str:
    """Deep link a customer lands on when scanning the code on a table."""
    if platform == "whatsapp":
        phone = re.sub(r"[^0-9]", "", cfg.restaurant_phone)
        text = quote(f"Olá! Estou na mesa {table_number} do {cfg.restaurant_name}. Gostaria de fazer um pedido.")
        return f"https://wa.me/{phone}?text={text}"
    if platform == "telegram":
        start = quote(f"Mesa {table_number} - {cfg.restaurant_name}")
        return f"https://t.me/{cfg.telegram_bot_username}?start={start}"
    return f"{cfg.public_base_url.rstrip('/')}/order?table={table_number}"


def make_table_codes(
    table_count: int,
    platforms: Sequence[str] = ("whatsapp", "telegram"),
    out_dir: Path = OUT_DIR,
    cfg: Settings = settings,
) -> List[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    made: List[Path] = []
    for table in range(1, table_count + 1):
        for platform in platforms:
            url = table_url(table, platform, cfg)
            img = qrcode.make(url, error_correction=qrcode.ERROR_CORRECT_M, border=2)
            out_path = out_dir / f"mesa-{table}-{platform}.png"
            img.save(out_path)
            print(f"OK  mesa {table} ({platform})  ->  {out_path}  ({url})")
            made.append(out_path)
    return made


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate one QR code per table and platform.")
    parser.add_argument("--tables", type=int, default=10)
    parser.add_argument("--platform", action="append", choices=PLATFORMS, dest="platforms")
    parser.add_argument("--out", type=Path, default=OUT_DIR)
    args = parser.parse_args()

    made = make_table_codes(args.tables, args.platforms or ("whatsapp", "telegram"), args.out)
    print(f"\nDone. Generated {len(made)} QR codes in: {args.out}")


if __name__ == "__main__":
    main()
