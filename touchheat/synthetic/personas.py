from __future__ import annotations
import random
from typing import Dict, List

from ..snippet.classifier import DomNode, TapMemory, build_event, detect_mis_tap, selector_for

VIEWPORTS = [(375, 667), (390, 844), (412, 915)]


def _page():
    """A small mobile page: nav, article links, a sticky CTA bar."""
    body = DomNode("body")
    nav = body.append(DomNode("nav", classes=["top-nav"]))
    menu = nav.append(DomNode("button", id="menu"))
    main = body.append(DomNode("main", classes=["content", "article", "wide"]))
    links = [main.append(DomNode("a", classes=["inline-link"])) for _ in range(4)]
    bar = body.append(DomNode("div", classes=["cta-bar", "sticky"]))
    buy = bar.append(DomNode("button", classes=["btn", "btn-primary"]))
    later = bar.append(DomNode("button", classes=["btn", "btn-ghost"]))
    return {"menu": menu, "links": links, "buy": buy, "later": later, "main": main}


def _session(taps, url: str, viewport) -> List[Dict]:
    """taps: list of (t_ms, x, y, element, pressure) in capture order."""
    memory = TapMemory()
    w, h = viewport
    ev = []
    for t, x, y, el, p in taps:
        x = min(max(x, 0), w - 1)
        y = min(max(y, 0), h - 1)
        mis = detect_mis_tap(memory, x, y, t)
        ev.append(build_event(x, y, w, h, url, mis, pressure=p, selector=selector_for(el)))
    return ev


def right_thumb(url="https://shop.example.com/product/42", taps=60) -> List[Dict]:
    """One-handed right thumb: lower-right heavy, buys."""
    page = _page(); vp = random.choice(VIEWPORTS); w, h = vp
    seq = []; t = 0.0
    for i in range(taps):
        t += random.uniform(400, 1500)
        if i % 10 == 9:
            seq.append((t, w * 0.72, h * 0.93, page["buy"], random.uniform(0.2, 0.6)))
        else:
            seq.append((t, random.gauss(w * 0.7, 30), random.gauss(h * 0.7, 60), random.choice(page["links"]), None))
    return _session(seq, url, vp)


def left_thumb(url="https://shop.example.com/product/42", taps=40) -> List[Dict]:
    """Left-handed: lives in the left third, rarely reaches the CTA bar."""
    page = _page(); vp = random.choice(VIEWPORTS); w, h = vp
    seq = []; t = 0.0
    for i in range(taps):
        t += random.uniform(500, 1800)
        seq.append((t, random.gauss(w * 0.2, 25), random.gauss(h * 0.65, 70), random.choice(page["links"]), None))
    return _session(seq, url, vp)


def fat_finger(url="https://shop.example.com/checkout", taps=30) -> List[Dict]:
    """Corrective double taps on small targets."""
    page = _page(); vp = random.choice(VIEWPORTS); w, h = vp
    seq = []; t = 0.0
    for i in range(taps):
        t += random.uniform(700, 2000)
        x, y = random.gauss(w * 0.5, 40), random.gauss(h * 0.9, 20)
        seq.append((t, x, y, page["later"], None))
        if i % 3 == 0:
            # retry within the mis-tap window, a few px off
            seq.append((t + random.uniform(40, 120), x + random.uniform(-15, 15), y + random.uniform(-15, 15), page["buy"], None))
    return _session(seq, url, vp)


def reader(url="https://blog.example.com/post/thumbs", taps=50) -> List[Dict]:
    """Two-handed reader: centered taps, the menu once."""
    page = _page(); vp = random.choice(VIEWPORTS); w, h = vp
    seq = [(0.0, w * 0.9, 30, page["menu"], None)]; t = 0.0
    for i in range(taps):
        t += random.uniform(2000, 6000)
        seq.append((t, random.gauss(w * 0.5, 35), random.gauss(h * 0.5, 120), page["main"], None))
    return _session(seq, url, vp)
