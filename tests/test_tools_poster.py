"""Tests for the readpo-poster tool."""

import pytest

from mcpie.tools.poster.tools import ReadpoPosterTool, poster_url


class TestPosterUrl:
    def test_plain_text(self):
        assert poster_url("Hello") == "https://readpo.com/p/Hello"

    def test_encodes_like_encode_uri_component(self):
        url = poster_url("# Title\n\n*bold* & (more)!")
        assert url == "https://readpo.com/p/%23%20Title%0A%0A*bold*%20%26%20(more)!"

    def test_encodes_unicode_as_utf8(self):
        assert poster_url("海报") == "https://readpo.com/p/%E6%B5%B7%E6%8A%A5"

    def test_slashes_and_question_marks_are_encoded(self):
        assert poster_url("a/b?c=d") == "https://readpo.com/p/a%2Fb%3Fc%3Dd"

    def test_custom_base_url(self):
        assert poster_url("x", base_url="https://posters.test/") == "https://posters.test/p/x"


class TestReadpoPosterTool:
    @pytest.mark.asyncio
    async def test_returns_image_link(self):
        result = await ReadpoPosterTool().invoke({"markdown": "# Release notes"})

        assert result.is_error is False
        assert result.text == "https://readpo.com/p/%23%20Release%20notes"

    @pytest.mark.asyncio
    async def test_missing_markdown(self):
        result = await ReadpoPosterTool().invoke({})

        assert result.is_error is True
        assert "markdown" in result.text

    @pytest.mark.asyncio
    async def test_blank_markdown(self):
        result = await ReadpoPosterTool().invoke({"markdown": "   \n"})

        assert result.is_error is True
        assert "Markdown content" in result.text

    @pytest.mark.asyncio
    async def test_non_string_markdown(self):
        result = await ReadpoPosterTool().invoke({"markdown": 42})
        assert result.is_error is True

    def test_descriptor(self):
        descriptor = ReadpoPosterTool().descriptor()

        assert descriptor.name == "readpo-poster"
        assert descriptor.inputSchema["required"] == ["markdown"]
