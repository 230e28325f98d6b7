import io

from PIL import Image

from desktop_bot.desktop import ResolutionScaler, parse_key_combo


def make_scaler():
    monitor = {"left": 0, "top": 0, "width": 2048, "height": 1536}
    return ResolutionScaler(1024, 768, monitor=monitor)


def test_model_space_is_downsized():
    scaler = make_scaler()
    assert scaler.factor == 0.5
    assert scaler.model_size == (1024, 768)


def test_scale_to_original_space():
    scaler = make_scaler()
    assert scaler.scale_to_original_space((100, 200)) == (200, 400)
    assert scaler.scale_to_model_space((200, 400)) == (100, 200)


def test_points_are_clamped_to_screen():
    scaler = make_scaler()
    assert scaler.scale_to_original_space((5000, -10)) == (2047, 0)


def test_monitor_offset():
    scaler = ResolutionScaler(1920, 1080, monitor={"left": 1920, "top": 0, "width": 1920, "height": 1080})
    assert scaler.factor == 1.0
    assert scaler.scale_to_original_space((10, 20)) == (1930, 20)


def test_screenshot_is_resized_png():
    scaler = make_scaler()
    png = scaler.take_screenshot(Image.new("RGB", (2048, 1536), "white"))
    img = Image.open(io.BytesIO(png))
    assert img.format == "PNG"
    assert img.size == (1024, 768)


def test_parse_key_combo():
    assert parse_key_combo("Enter") == ["enter"]
    assert parse_key_combo("Return") == ["enter"]
    assert parse_key_combo("ctrl+Shift+t") == ["ctrl", "shift", "t"]
    assert parse_key_combo("+") == ["+"]
