from chefbot.config import Settings
from tools.make_qr_codes import make_table_codes, table_url


def _cfg():
    return Settings(
        restaurant_name="Casa Teste",
        restaurant_phone="+55 11 98888-7777",
        telegram_bot_username="casa_bot",
        public_base_url="https://pedidos.example.com/",
    )


def test_table_urls():
    cfg = _cfg()
    wa = table_url(4, "whatsapp", cfg)
    assert wa.startswith("https://wa.me/5511988887777?text=")
    assert "mesa%204" in wa

    tg = table_url(4, "telegram", cfg)
    assert tg == "https://t.me/casa_bot?start=Mesa%204%20-%20Casa%20Teste"

    assert table_url(4, "web", cfg) == "https://pedidos.example.com/order?table=4"


def test_make_table_codes(tmp_path):
    made = make_table_codes(2, platforms=("telegram", "web"), out_dir=tmp_path, cfg=_cfg())
    assert [p.name for p in made] == [
        "mesa-1-telegram.png",
        "mesa-1-web.png",
        "mesa-2-telegram.png",
        "mesa-2-web.png",
    ]
    assert all(p.exists() and p.stat().st_size > 0 for p in made)
