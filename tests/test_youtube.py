"""Unit tests for YouTube URL recognition and video id extraction."""

import pytest

from caption_transcriber.core.youtube import extract_video_id, is_youtube_url, video_url


class TestIsYoutubeUrl:

    @pytest.mark.parametrize("url", [
        "https://www.youtube.com/watch?v=Mqg3aTGNxZ0",
        "https://youtube.com/watch?v=Mqg3aTGNxZ0",
        "https://youtu.be/Mqg3aTGNxZ0",
        "http://www.youtu.be/Mqg3aTGNxZ0",
    ])
    def test_youtube_hosts(self, url):
        assert is_youtube_url(url)

    @pytest.mark.parametrize("text", [
        "https://vimeo.com/12345",
        "https://notyoutube.com/watch?v=Mqg3aTGNxZ0",
        "just some text",
        "",
    ])
    def test_other_input(self, text):
        assert not is_youtube_url(text)


class TestExtractVideoId:

    @pytest.mark.parametrize("text", [
        "https://www.youtube.com/watch?v=Mqg3aTGNxZ0",
        "https://www.youtube.com/watch?feature=share&v=Mqg3aTGNxZ0&t=42",
        "https://youtu.be/Mqg3aTGNxZ0?si=abc",
        "https://www.youtube.com/v/Mqg3aTGNxZ0",
        "https://yt.be/Mqg3aTGNxZ0",
        "Mqg3aTGNxZ0",
        "  Mqg3aTGNxZ0\n",
    ])
    def test_extracts_id(self, text):
        assert extract_video_id(text) == "Mqg3aTGNxZ0"

    def test_id_with_dash_and_underscore(self):
        assert extract_video_id("https://youtu.be/a-b_c-d_e-f") == "a-b_c-d_e-f"

    @pytest.mark.parametrize("text", [
        "https://www.youtube.com/",
        "https://www.youtube.com/watch?v=short",
        "not a video",
    ])
    def test_no_id(self, text):
        assert extract_video_id(text) is None

    def test_video_url(self):
        assert video_url("Mqg3aTGNxZ0") == "https://www.youtube.com/watch?v=Mqg3aTGNxZ0"
