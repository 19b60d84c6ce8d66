"""
Shared test fixtures for avmeta tests.

Providers take their fetcher by injection, so tests hand them a StaticFetcher
serving canned pages: no real HTTP requests are made anywhere in the suite.
"""
import pytest

from avmeta.errors import FetchError
from avmeta.utils.network import Document, Fetcher, header_charset


HEYZO_HOMEPAGE = "https://www.heyzo.com/moviepages/0841/index.html"
HEYZO_MANIFEST = "https://www.heyzo.com/hls/3/77/index.m3u8"

AVE_HOMEPAGE = "https://www.aventertainments.com/product_lists.aspx?product_id=12345&languageID=2&dept_id=29"
AVE_SEARCH = (
    "https://www.aventertainments.com/search_Products.aspx"
    "?languageID=2&dept_id=29&keyword=ABC-123&searchby=keyword"
)


HEYZO_LD_JSON = """
{
  "name": "Example Heyzo Title",
  "image": "//www.heyzo.com/contents/3000/0841/images/player_thumbnail.jpg",
  "description": "A summary.",
  "releasedEvent": {"startDate": "2015-04-05"},
  "video": {"duration": "PT01H02M00S", "actor": "Aoi", "provider": "HEYZO"},
  "aggregateRating": {"ratingValue": "4.5"}
}
"""

HEYZO_BODY = """
<div id="movie">
  <h1>Fallback Aoi</h1>
  <table class="movieInfo">
    <tr><td>公開日</td><td>2015-04-06</td></tr>
    <tr><td>出演</td><td><a><span>Aoi</span></a> <a><span>Mio</span></a></td></tr>
    <tr><td>シリーズ</td><td>-Summer Series-</td></tr>
    <tr><td>評価</td><td><span itemprop="ratingValue">3.0</span></td></tr>
    <tr><td>その他</td><td>ignored</td></tr>
  </table>
  <ul class="tag-keyword-list"><li><a>Tag1</a></li><li><a>Tag2</a></li></ul>
  <p class="memo">  Memo summary  </p>
</div>
<div id="playerContainer">
<script type="text/javascript">
var movieId = '77';
var siteID = '3';
var stream = '/hls/'+siteID+'/'+movieId+'/index.m3u8';
</script>
</div>
<script type="text/javascript">var o = {"full":"00:57:00"};</script>
<div class="sample-images yoxview"><script>
var images = ["/contents/3000/0841/gallery/001.jpg","/contents/3000/0841/gallery/002.jpg"];
</script></div>
"""


def heyzo_page(ld_json: str | None = HEYZO_LD_JSON, body: str = HEYZO_BODY) -> str:
    head = '<meta property="og:image" content="/contents/3000/0841/images/og.jpg">'
    if ld_json is not None:
        head += f'<script type="application/ld+json">{ld_json}</script>'
    return f"<html><head>{head}</head><body>{body}</body></html>"


MASTER_PLAYLIST = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=400,RESOLUTION=640x360
/sample/77/3/ts.sd.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=900,RESOLUTION=1280x720
/sample/77/3/ts.hd.m3u8
"""

EMPTY_PLAYLIST = """#EXTM3U
#EXT-X-VERSION:3
"""

AVE_PAGE = """
<html><body><div id="MyBody">
  <div class="section-title"><h3>  Example Title  </h3></div>
  <div class="product-description mt-20">First text node summary.<br><span>Extra markup</span></div>
  <div id="PlayerCover"><img src="https://imgs02.aventertainments.com/new/bigcover/dvd1abc-123.jpg"></div>
  <div id="sscontainerppv123"><img src="/vodimages/screenshot/large/abc-123.jpg"></div>
  <video id="player1"><source src="https://ppvclips02.aventertainments.com/abc-123.mp4"></source></video>
  <div class="product-info-block-rev mt-20">
    <div class="single-info"><span class="title">商品番号</span><span class="value"> ABC-123 </span></div>
    <div class="single-info"><span class="title">主演女優</span><span class="value"><a>Aoi</a>, <a>Mio</a></span></div>
    <div class="single-info"><span class="title">スタジオ</span><span class="value">Studio X</span></div>
    <div class="single-info"><span class="title">シリーズ</span><span class="value">Series Y</span></div>
    <div class="single-info"><span class="title">カテゴリ</span><span class="value"><a>Cat1</a> <a>Cat2</a></span></div>
    <div class="single-info"><span class="title">発売日</span><span class="value">2/17/2022 (発売日)</span></div>
    <div class="single-info"><span class="title">収録時間</span><span class="value">Apx. 120 Min.</span></div>
    <div class="single-info"><span class="title">その他</span><span class="value">ignored</span></div>
  </div>
</div></body></html>
"""

AVE_SEARCH_PAGE = """
<html><body>
<div class="single-slider-product grid-view-product">
  <div class="single-slider-product__image">
    <a href="https://www.aventertainments.com/product_lists.aspx?product_id=12345&amp;languageID=2&amp;dept_id=29">
      <img src="https://imgs02.aventertainments.com/new/jacket_images/dvd1abc-123.jpg">
    </a>
  </div>
  <div class="single-slider-product__content">
    <p class="product-title"><a> Example Title </a></p>
  </div>
</div>
<div class="single-slider-product grid-view-product">
  <div class="single-slider-product__image"><a><img src="/new/jacket_images/broken.jpg"></a></div>
  <div class="single-slider-product__content"><p class="product-title"><a>No link</a></p></div>
</div>
</body></html>
"""


class StaticFetcher(Fetcher):
    """Serves canned pages by URL.

    Clones share the page table and the request log; ``depth`` records how
    many clone() calls separate a fetch from the root fetcher.
    """

    def __init__(self, pages=None, requests=None, depth=0):
        super().__init__(retry=1, delay=0)
        self.pages = pages if pages is not None else {}
        self.requests = requests if requests is not None else []
        self.depth = depth
        self.clones = []
        self.closed = False

    def clone(self):
        child = StaticFetcher(self.pages, self.requests, self.depth + 1)
        self.clones.append(child)
        return child

    def close(self):
        self.closed = True

    def fetch(self, url, headers=None):
        self.requests.append((self.depth, url))
        page = self.pages.get(url)
        if page is None:
            raise FetchError(url, status_code=404)
        if isinstance(page, Exception):
            raise page
        # (body, Content-Type) pairs announce a charset like a real response
        encoding = None
        if isinstance(page, tuple):
            page, content_type = page
            encoding = header_charset(content_type)
        if isinstance(page, str):
            page = page.encode(encoding or "utf-8")
        return Document(url=url, content=page, encoding=encoding)


@pytest.fixture
def static_fetcher():
    return StaticFetcher()


@pytest.fixture
def heyzo_fetcher():
    return StaticFetcher({
        HEYZO_HOMEPAGE: heyzo_page(),
        HEYZO_MANIFEST: MASTER_PLAYLIST,
    })


@pytest.fixture
def ave_fetcher():
    return StaticFetcher({
        AVE_HOMEPAGE: AVE_PAGE,
        AVE_SEARCH: AVE_SEARCH_PAGE,
    })


@pytest.fixture
def sjis_ave_fetcher():
    """AVE pages served as Shift_JIS, charset only in the Content-Type header."""
    content_type = "text/html; charset=Shift_JIS"
    return StaticFetcher({
        AVE_HOMEPAGE: (AVE_PAGE, content_type),
        AVE_SEARCH: (AVE_SEARCH_PAGE, content_type),
    })
