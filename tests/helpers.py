"""Sample feeds and HTTP response builders for History Slackbot tests."""

from unittest.mock import Mock


HISTORY_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Today in History</title>
    <link>https://www.onthisday.com/</link>
    <description>Historical events for today</description>
    <item>
      <title>1969: Apollo 11 lands on the Moon</title>
      <link>https://example.com/events/apollo-11</link>
      <description><![CDATA[<p>Neil Armstrong and Buzz Aldrin<br>walk on the Moon.</p>]]></description>
      <pubDate>Sun, 20 Jul 2025 00:00:00 GMT</pubDate>
      <category>Science</category>
      <category>Space</category>
    </item>
    <item>
      <title>1881: Sitting Bull surrenders</title>
      <link>https://example.com/events/sitting-bull</link>
      <description>Lakota leader surrenders at Fort Buford.</description>
      <category>Politics</category>
    </item>
    <item>
      <title>Untitled anniversary</title>
      <link>https://example.com/events/untitled</link>
      <description></description>
    </item>
  </channel>
</rss>
"""

HOLIDAY_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Holidays</title>
    <item>
      <title>National Moon Day</title>
      <link>https://example.com/holidays/moon</link>
      <description>Celebrate the &lt;b&gt;Moon&lt;/b&gt;.</description>
    </item>
    <item>
      <title>International Chess Day</title>
      <link>https://example.com/holidays/chess</link>
      <description>Play chess.</description>
    </item>
    <item>
      <title>Fortune Cookie Day: crack one open</title>
      <link>https://example.com/holidays/cookie</link>
      <description>Cookies.</description>
    </item>
  </channel>
</rss>
"""


def make_response(status_code=200, content=b"", headers=None, json_body=None, text=""):
    """Build a requests-like response mock."""
    response = Mock()
    response.status_code = status_code
    response.content = content
    response.headers = headers or {}
    response.text = text
    if json_body is not None:
        response.json.return_value = json_body
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    return response


def claude_response(text, status_code=200):
    """Build a Messages API response mock whose first block carries ``text``."""
    return make_response(
        status_code=status_code,
        json_body={
            "id": "msg_01",
            "type": "message",
            "role": "assistant",
            "model": "claude-sonnet-4-5",
            "content": [{"type": "text", "text": text}],
            "usage": {"input_tokens": 512, "output_tokens": 128},
        },
    )


