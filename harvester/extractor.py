"""
Page extraction capability.
Holds the in-page script that opens the posts view, scrolls until no new content
loads (sending a heartbeat every round) and collects the rendered posts, plus the
Python-side normalisation of the rows it returns.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta

from harvester.models import ExtractionRecord

logger = logging.getLogger(__name__)

HEARTBEAT_BINDING = "harvesterHeartbeat"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
UNKNOWN_DATE = "Unknown"

# Evaluated with a single options object: {pageUrl, postsClickWaitMs, scrollIntervalMs, maxStaleRounds}.
# Resolves to an array of {pageUrl, pageName, content, rawTime, likes, comments}.
EXTRACT_POSTS_SCRIPT = """
async (opts) => {
    const sleep = (ms) => new Promise((resolve) => setTimeout(resolve, ms));
    const pageUrl = opts.pageUrl || window.location.href;

    const heartbeat = () => {
        const send = window.%(binding)s;
        if (typeof send !== 'function') return;
        try {
            Promise.resolve(send()).catch(() => {});
        } catch (e) {}
    };

    const pageName = () => {
        const titleEl = document.querySelector(
            '.org-top-card-summary__title, .org-top-card-primary-content__title'
        );
        if (titleEl) return titleEl.innerText.trim();
        return (document.title || '').replace('| LinkedIn', '').trim();
    };

    try {
        const postsLink = document.querySelector("a[href*='/posts/']");
        if (!postsLink) {
            return [{
                pageUrl,
                pageName: 'not found',
                content: 'no post',
                rawTime: '',
                likes: '',
                comments: '',
                sentinel: true,
            }];
        }

        if (!window.location.href.includes('/posts/')) {
            postsLink.click();
            await sleep(opts.postsClickWaitMs);
        }

        let staleRounds = 0;
        let lastHeight = 0;
        while (staleRounds < opts.maxStaleRounds) {
            heartbeat();
            window.scrollTo(0, document.body.scrollHeight);
            await sleep(opts.scrollIntervalMs);
            const newHeight = document.body.scrollHeight;
            if (newHeight === lastHeight) {
                staleRounds++;
            } else {
                staleRounds = 0;
                lastHeight = newHeight;
            }
        }

        const name = pageName();
        const results = [];
        document.querySelectorAll('div.feed-shared-update-v2').forEach((postEl) => {
            try {
                const contentEl = postEl.querySelector('.update-components-text');
                const timeEl = postEl.querySelector('.update-components-actor__sub-description span');
                const likesEl = postEl.querySelector('.social-details-social-counts__reactions-count');
                const commentsEl = postEl.querySelector('.social-details-social-counts__comments');
                let comments = '0';
                if (commentsEl) {
                    comments = commentsEl.innerText.replace(' comments', '').replace(' comment', '').trim();
                }
                results.push({
                    pageUrl,
                    pageName: name,
                    content: contentEl ? contentEl.innerText.trim() : 'No content found',
                    rawTime: timeEl ? timeEl.innerText.trim() : 'Unknown',
                    likes: likesEl ? likesEl.innerText.trim() : '0',
                    comments,
                });
            } catch (e) {
                console.warn('Error parsing a post:', e);
            }
        });
        return results;
    } catch (e) {
        console.warn('Extraction error:', e);
        return [];
    }
}
""" % {'binding': HEARTBEAT_BINDING}

_NON_ASCII = re.compile(r"[^\x00-\x7F]")
_RELATIVE_TIME = re.compile(r"(\d+)\s*(mo|m|w|d|y|h)")

_UNIT_DELTAS = {
    'mo': lambda n: relativedelta(months=n),
    'm': lambda n: relativedelta(minutes=n),
    'w': lambda n: relativedelta(weeks=n),
    'd': lambda n: relativedelta(days=n),
    'y': lambda n: relativedelta(years=n),
    'h': lambda n: relativedelta(hours=n),
}


def remove_non_ascii(text: str) -> str:
    """Strip characters outside the ASCII range (emoji, mojibake)."""
    return _NON_ASCII.sub("", text or "")


def convert_relative_time(time_string: str, now: Optional[datetime] = None) -> str:
    """
    Convert a relative age like "9mo", "3w", "2d" or "1y" into an absolute local timestamp.

    Args:
        time_string: Relative time text as shown on the page
        now: Reference time, defaults to the current local time

    Returns:
        "YYYY-MM-DD HH:MM:SS", or "Unknown" if no age could be read
    """
    cleaned = re.sub(r"[^\da-z\s]", "", (time_string or "").lower())
    match = _RELATIVE_TIME.search(cleaned)
    if not match:
        return UNKNOWN_DATE

    value = int(match.group(1))
    unit = match.group(2)
    reference = now or datetime.now()
    try:
        return (reference - _UNIT_DELTAS[unit](value)).strftime(DATE_FORMAT)
    except (ValueError, OverflowError):
        logger.debug(f"Relative time out of range: {time_string!r}")
        return UNKNOWN_DATE


def normalize_payload(payload: List[Dict[str, Any]], origin_url: str,
                      now: Optional[datetime] = None) -> List[ExtractionRecord]:
    """
    Turn the raw script response into records.

    Text fields other than pageUrl are stripped of non-ASCII characters and the
    relative post age is converted into an absolute date. The no-posts sentinel row is passed through as is.

    Args:
        payload: Objects returned by EXTRACT_POSTS_SCRIPT
        origin_url: Queue URL the page was opened for
        now: Reference time for relative dates

    Returns:
        List of ExtractionRecord in page order
    """
    records = []
    for item in payload:
        if not isinstance(item, dict):
            logger.debug(f"Ignoring non-object row from extraction script: {item!r}")
            continue

        if item.get('sentinel'):
            records.append(ExtractionRecord.from_payload(item, origin_url))
            continue

        # pageUrl identifies the queue item and is kept verbatim
        cleaned = {key: remove_non_ascii(value) if isinstance(value, str) and key != 'pageUrl' else value
                   for key, value in item.items()}
        if 'postDate' not in cleaned:
            cleaned['postDate'] = convert_relative_time(cleaned.get('rawTime', ''), now)
        records.append(ExtractionRecord.from_payload(cleaned, origin_url))

    return records
