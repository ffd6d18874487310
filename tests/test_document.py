from letterboxd_scrape.document import Document, classes_of, split_selector_list


HTML = """
<html>
  <head>
    <meta property="og:title" content="Parasite (2019)" />
    <meta name="twitter:data2" content="4.6 out of 5" />
    <script type="application/ld+json">
    /* <![CDATA[ */
    {"name": "Parasite", "aggregateRating": {"ratingValue": 4.56, "ratingCount": 1234}}
    /* ]]> */
    </script>
  </head>
  <body class="film backdropped">
    <h1 class="headline-1">  Parasite </h1>
    <ul>
      <li class="item"> One </li>
      <li class="item">Two
        words</li>
      <li class="item">   </li>
      <li class="item">One</li>
    </ul>
    <a class="blank" href="  ">x</a>
  </body>
</html>
"""


def test_find_and_text():
    doc = Document.from_html(HTML, url="https://letterboxd.com/film/parasite-2019/")
    assert doc.select_text("h1.headline-1") == "Parasite"
    assert doc.find("h2.missing") is None
    assert doc.select_text("h2.missing") is None
    assert Document.text(None) == ""
    assert doc.has("li.item")
    assert not doc.has("li.other")


def test_texts_keep_order_and_repeats():
    doc = Document.from_html(HTML)
    assert doc.texts("li.item") == ["One", "Two words", "One"]
    assert len(doc.find_all("li.item")) == 4


def test_attributes_and_meta():
    doc = Document.from_html(HTML)
    assert doc.select_attr("a.blank", "href") is None
    assert doc.select_attr("a.blank", "missing") is None
    assert doc.meta(property="og:title") == "Parasite (2019)"
    assert doc.meta(name="twitter:data2") == "4.6 out of 5"
    assert doc.meta() is None
    assert doc.body_classes() == {"film", "backdropped"}
    assert classes_of(doc.find("li.item")) == "item"
    assert classes_of(None) == ""


def test_json_ld_strips_cdata_wrapper():
    doc = Document.from_html(HTML)
    data = doc.json_ld()
    assert data["name"] == "Parasite"
    assert data["aggregateRating"]["ratingCount"] == 1234


def test_json_ld_missing_or_broken():
    assert Document.from_html("<html></html>").json_ld() == {}
    broken = "<script type='application/ld+json'>{not json</script>"
    assert Document.from_html(broken).json_ld() == {}


def test_selector_lists_match_in_document_order():
    html = """
    <div class="wrap">
      <span class="b" id="first">B</span>
      <span class="a" id="second">A</span>
      <span class="a b" id="third">AB</span>
    </div>
    """
    doc = Document.from_html(html)

    assert [n.attributes["id"] for n in doc.find_all("span.a, span.b")] == ["first", "second", "third"]
    assert doc.find("span.a, span.b").attributes["id"] == "first"
    assert doc.texts("span.a, .wrap span.b") == ["B", "A", "AB"]


def test_selector_lists_within_scope():
    html = "<ul><li id='x'><i class='p'>1</i><b class='q'>2</b></li><li><i class='p'>3</i></li></ul>"
    doc = Document.from_html(html)
    scope = doc.find("li#x")

    assert doc.texts("b.q, i.p", scope) == ["1", "2"]
    assert doc.find("em, strong", scope) is None


def test_split_selector_list_respects_brackets_and_quotes():
    assert split_selector_list("a, b") == ["a", "b"]
    assert split_selector_list("a[title='x, y'], div > p") == ["a[title='x, y']", "div > p"]
    assert split_selector_list("li.item") == ["li.item"]
