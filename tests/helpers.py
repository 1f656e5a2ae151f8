from game_shelf.settings import Settings

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        host="127.0.0.1",
        port=4000,
        data_file=str(tmp_path / "data" / "games.json"),
        images_dir=str(tmp_path / "images"),
        cors_allow_origins=["*"],
        delete_replaced_images=True,
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)
