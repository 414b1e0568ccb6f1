import io

from PIL import Image

from reportgen.image.processing import fit_within, prepare_figure


def _encode(img, fmt):
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def test_fit_within_keeps_aspect_ratio():
    assert fit_within((800, 400), (400, 266)) == (400, 200)
    assert fit_within((100, 300), (400, 266)) == (89, 266)
    # small images are scaled up to the box
    assert fit_within((40, 20), (400, 266)) == (400, 200)


def test_prepare_figure_keeps_png_bytes():
    blob = _encode(Image.new("RGB", (300, 150), (10, 120, 200)), "PNG")
    figure = prepare_figure(blob)
    assert figure is not None
    assert figure.data == blob
    assert (figure.width_px, figure.height_px) == (400, 200)


def test_prepare_figure_converts_unsupported_formats_to_png():
    blob = _encode(Image.new("RGB", (50, 50), (0, 0, 0)), "TIFF")
    figure = prepare_figure(blob, max_width_px=100, max_height_px=100)
    assert figure is not None
    with Image.open(figure.stream()) as img:
        assert img.format == "PNG"
        assert img.size == (50, 50)
    assert (figure.width_px, figure.height_px) == (100, 100)


def test_prepare_figure_rejects_garbage(capsys):
    assert prepare_figure(b"<html>not an image</html>") is None
    assert "Warning" in capsys.readouterr().out
