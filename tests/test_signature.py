import io

from PIL import Image

from order_portal.signature import SignaturePad


def test_new_pad_is_empty():
    assert SignaturePad().is_empty


def test_strokes_follow_press_move_release():
    pad = SignaturePad()
    pad.press(10, 10)
    pad.move(20, 25)
    pad.release()
    pad.move(99, 99)
    pad.press(50, 50)
    pad.release()

    assert pad.strokes == [[(10, 10), (20, 25)], [(50, 50)]]
    assert not pad.is_empty


def test_clear_discards_strokes():
    pad = SignaturePad()
    pad.press(10, 10)
    pad.move(30, 30)
    pad.clear()

    assert pad.is_empty
    assert pad.strokes == []


def test_export_is_transparent_png_with_ink(signature_png):
    image = Image.open(io.BytesIO(signature_png))

    assert image.format == "PNG"
    assert image.mode == "RGBA"
    assert image.size == (600, 200)
    # Background is transparent, the stroke is opaque.
    assert image.getpixel((0, 0))[3] == 0
    assert image.getpixel((20, 150))[3] == 255


def test_export_respects_pad_size():
    pad = SignaturePad(width=300, height=100)
    pad.press(5, 5)
    pad.release()

    assert Image.open(io.BytesIO(pad.export())).size == (300, 100)
