"""Shared test fixtures."""

import html
import itertools

import pytest

from x_cleaner.models import Engagement, Record

# 33 words, no CJK
LONG_ENGLISH = (
    "The quarterly report shows steady growth across every region we track, "
    "with particularly strong results in the northern markets where new "
    "partnerships opened several channels that had been closed for years before this"
)

# 55 CJK ideographs
LONG_CHINESE = "今天天气很好我们一起去公园散步然后去图书馆看书晚上回家做饭吃饭聊天看电影写日记早点休息明天继续努力工作学习生活"


class FakeHandle:
    def __init__(self, when, seq, callback, args):
        self.when = when
        self.seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeLoop:
    """Manual clock with the call_later() subset of an asyncio loop."""

    def __init__(self):
        self.now = 0.0
        self._handles: list[FakeHandle] = []
        self._seq = itertools.count()

    def time(self):
        return self.now

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(self.now + delay, next(self._seq), callback, args)
        self._handles.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for h in self._handles if not h.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, running every timer that falls due."""
        target = self.now + seconds
        while True:
            due = [h for h in self._handles if not h.cancelled and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.when, h.seq))
            self._handles.remove(handle)
            self.now = handle.when
            handle.callback(*handle.args)
        self.now = target
        self._handles = [h for h in self._handles if not h.cancelled]

    def run_all(self, limit: int = 1000) -> None:
        for _ in range(limit):
            live = [h for h in self._handles if not h.cancelled]
            if not live:
                return
            self.advance(max(h.when for h in live) - self.now)
        raise AssertionError("timers kept rescheduling")


def tweet_html(
    text: str | None = "",
    *,
    image: bool = False,
    video: bool = False,
    views: str | None = None,
    likes: str | None = None,
    retweets: str | None = None,
    replies: str | None = None,
) -> str:
    """Build an item article shaped like X's timeline markup."""
    parts = ['<article data-testid="tweet" role="article">']
    parts.append('<div data-testid="User-Name"><span>Someone</span><span>@someone</span></div>')
    if text is not None:
        parts.append(
            f'<div data-testid="tweetText" lang="en"><span>{html.escape(text)}</span></div>'
        )
    if video:
        parts.append('<div data-testid="videoPlayer"><video src="clip.mp4"></video></div>')
    if image:
        parts.append('<div data-testid="tweetPhoto"><img src="photo.jpg" alt="Image"></div>')

    buttons = []
    if replies is not None:
        buttons.append(
            f'<button role="button" aria-label="{replies} Replies. Reply">'
            f"<span>{replies}</span></button>"
        )
    if retweets is not None:
        buttons.append(
            f'<button role="button" aria-label="{retweets} reposts. Repost">'
            f"<span>{retweets}</span></button>"
        )
    if likes is not None:
        buttons.append(
            f'<button role="button" aria-label="{likes} Likes. Like">'
            f"<span>{likes}</span></button>"
        )
    if views is not None:
        buttons.append(
            f'<a role="button" aria-label="{views} views. View post analytics" '
            f'href="/someone/status/1/analytics"><span>{views}</span></a>'
        )
    if buttons:
        parts.append(f'<div role="group">{"".join(buttons)}</div>')

    parts.append("</article>")
    return "".join(parts)


def timeline_html(items: list[str]) -> str:
    cells = "".join(f'<div data-testid="cellInnerDiv">{item}</div>' for item in items)
    return (
        "<html><head><title>Home / X</title></head><body>"
        f'<main><div aria-label="Timeline: Your Home Timeline">{cells}</div></main>'
        "</body></html>"
    )


@pytest.fixture
def loop() -> FakeLoop:
    return FakeLoop()


@pytest.fixture
def make_tweet():
    return tweet_html


@pytest.fixture
def make_timeline():
    return timeline_html


@pytest.fixture
def long_record() -> Record:
    """An English record that passes the short-text rule."""
    return Record(
        text=LONG_ENGLISH,
        secondary_word_count=33,
        engagement=Engagement(views=5000, likes=120, retweets=30),
    )


@pytest.fixture
def long_english() -> str:
    return LONG_ENGLISH


@pytest.fixture
def long_chinese() -> str:
    return LONG_CHINESE
