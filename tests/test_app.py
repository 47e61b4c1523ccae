import io

import pytest
from PIL import Image

from checker_gradient.app import create_app


@pytest.fixture
def app():
    return create_app({"TESTING": True, "SECRET_KEY": "test"})


@pytest.fixture
def client(app):
    return app.test_client()


def pointer(client, **body):
    return client.post("/pointer", json=body)


def test_index(client):
    resp = client.get("/")
    assert resp.status_code == 200
    html = resp.get_data(as_text=True)
    assert "Checker Gradient" in html
    assert "#efff00" in html
    assert 'value="color-burn"' in html


def test_state(client):
    data = client.get("/state").get_json()
    assert data["start"] == "#efff00"
    assert data["end"] == "#ff6400"
    assert data["angle"] == 180


def test_pointer_drag(client):
    data = pointer(client, endpoint="start", widget="wheel", event="down", x=195, y=100).get_json()
    assert data["start"] == "#00ffff"
    assert data["changed"] is True
    assert data["dragging"] is True and data["active"] == "start"

    data = pointer(client, endpoint="start", widget="wheel", event="move", x=5, y=100).get_json()
    assert data["start"] == "#ff0000"

    data = pointer(client, endpoint="start", widget="wheel", event="up").get_json()
    assert data["dragging"] is False and data["active"] is None
    assert data["end"] == "#ff6400"

    # state survives across requests in the same browser session
    assert client.get("/state").get_json()["start"] == "#ff0000"


def test_pointer_idle_move(client):
    data = pointer(client, endpoint="end", widget="brightness", event="move", x=10, y=10).get_json()
    assert data["changed"] is False
    assert data["end"] == "#ff6400"


def test_sessions_are_isolated(app):
    a, b = app.test_client(), app.test_client()
    pointer(a, endpoint="start", widget="wheel", event="down", x=100, y=100)
    assert a.get("/state").get_json()["start"] == "#ffffff"
    assert b.get("/state").get_json()["start"] == "#efff00"


def test_session_eviction():
    app = create_app({"TESTING": True, "SECRET_KEY": "test", "MAX_SESSIONS": 1})
    a, b = app.test_client(), app.test_client()
    pointer(a, endpoint="start", widget="wheel", event="down", x=100, y=100)
    b.get("/state")
    assert len(app.extensions["checker_gradient"]) == 1
    # a's session was dropped and starts over
    assert a.get("/state").get_json()["start"] == "#efff00"


@pytest.mark.parametrize(
    "body",
    [
        {"endpoint": "middle", "widget": "wheel", "event": "down"},
        {"endpoint": "start", "widget": "dial", "event": "down"},
        {"endpoint": "start", "widget": "wheel"},
        {"widget": "wheel", "event": "down"},
        {"endpoint": "start", "widget": "wheel", "event": "down", "x": "left"},
    ],
)
def test_pointer_bad_request(client, body):
    resp = client.post("/pointer", json=body)
    assert resp.status_code == 400
    assert "error" in resp.get_json()


def test_gradient_controls(client):
    data = client.post("/gradient", json={"angle": 400, "blend": "overlay"}).get_json()
    assert data["angle"] == 360
    assert data["css"].endswith("background-blend-mode: overlay;")

    data = client.post("/gradient", json={"checkerboard": False}).get_json()
    assert data["background"] == "linear-gradient(360deg, #efff00, #ff6400)"


def test_gradient_bad_blend(client):
    resp = client.post("/gradient", json={"blend": "multiply"})
    assert resp.status_code == 400
    assert client.get("/state").get_json()["blend"] == "screen"


def test_wheel_png(client):
    resp = client.get("/wheel.png?size=120")
    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    img = Image.open(io.BytesIO(resp.data))
    assert img.size == (120, 120)
    assert img.getpixel((60, 60)) == (255, 255, 255, 255)
    assert img.getpixel((0, 0))[3] == 0


@pytest.mark.parametrize("size", ["0", "5000", "big"])
def test_wheel_png_bad_size(client, size):
    assert client.get(f"/wheel.png?size={size}").status_code == 400


def test_brightness_png(client):
    resp = client.get("/brightness.png?color=ff0000&width=64&height=8")
    assert resp.status_code == 200
    img = Image.open(io.BytesIO(resp.data))
    assert img.size == (64, 8)
    r, g, b, a = img.getpixel((63, 0))
    assert r > 240 and g == 0 and b == 0 and a == 255


def test_brightness_png_bad_color(client):
    assert client.get("/brightness.png?color=zzz").status_code == 400


def test_css_endpoint(client):
    resp = client.get("/css?start=000&end=fff&angle=90&checkerboard=0")
    assert resp.get_json()["css"] == (
        "background: linear-gradient(90deg, #000000, #ffffff); "
        "background-blend-mode: screen;"
    )
    data = client.get("/css?blend=color-burn").get_json()
    assert data["background"].startswith("conic-gradient(")
    assert data["background"].endswith("linear-gradient(180deg, #efff00, #ff6400)")


def test_css_endpoint_rejects(client):
    assert client.get("/css?blend=multiply").status_code == 400
    assert client.get("/css?start=nope").status_code == 400
    assert client.get("/css?angle=wide").status_code == 400


@pytest.mark.parametrize(
    "body",
    [
        {"blend": 5},
        {"blend": None},
        {"angle": "inf"},
        {"angle": "nan"},
        {"angle": None},
    ],
)
def test_gradient_bad_input_is_json_400(client, body):
    resp = client.post("/gradient", json=body)
    assert resp.status_code == 400
    assert resp.is_json
    assert "error" in resp.get_json()


@pytest.mark.parametrize("angle", ["inf", "-inf", "nan"])
def test_css_non_finite_angle(client, angle):
    resp = client.get(f"/css?angle={angle}")
    assert resp.status_code == 400
    assert resp.is_json


def test_pointer_missing_field_message(client):
    resp = client.post("/pointer", json={"widget": "wheel", "event": "down"})
    assert resp.status_code == 400
    assert "endpoint" in resp.get_json()["error"]


def test_pointer_rejects_non_object_body(client):
    resp = client.post("/pointer", json=["start", "wheel", "down"])
    assert resp.status_code == 400


def test_internal_key_error_is_500(client, monkeypatch):
    from checker_gradient.interaction import GradientSession

    def broken(self, *args, **kwargs):
        raise KeyError("widgets")

    monkeypatch.setattr(GradientSession, "dispatch", broken)
    resp = pointer(client, endpoint="start", widget="wheel", event="down", x=1, y=1)
    assert resp.status_code == 500
    assert resp.is_json


def test_gradient_unexpected_failure_is_json_500(client, monkeypatch):
    from checker_gradient.interaction import GradientSession

    def broken(self, enabled):
        raise RuntimeError("boom")

    monkeypatch.setattr(GradientSession, "set_checkerboard", broken)
    resp = client.post("/gradient", json={"checkerboard": False})
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "boom"}


def test_css_unexpected_failure_is_json_500(client, monkeypatch):
    import checker_gradient.app as app_module

    def broken(text):
        raise RuntimeError("boom")

    monkeypatch.setattr(app_module, "canon_hex", broken)
    resp = client.get("/css")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "boom"}


def test_wheel_unexpected_failure_is_json_500(client, monkeypatch):
    import checker_gradient.app as app_module

    def broken(width, height):
        raise RuntimeError("boom")

    monkeypatch.setattr(app_module, "wheel_png", broken)
    resp = client.get("/wheel.png?size=64")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "boom"}
