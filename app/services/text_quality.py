"""
Text Quality Service - gibberish/profanity detection, quality scoring, keywords
"""
import re
from collections import Counter
from typing import Dict, Any, List

STOP_WORDS = frozenset("""
the be to of and a in that have i it for not on with he as you do at this but his by from they we say
her she or an will my one all would there their what so up out if about who get which go me when make
can like time no just him know take people into year your good some could them see other than then now
look only come its over think also back after use two how our work first well way even new want because
any these give day most us is was are been has had were said did having may am
""".split())

PROFANITY = (
    "fuck", "shit", "damn", "bitch", "ass", "asshole", "bastard", "crap", "hell", "piss",
    "dick", "cock", "pussy", "cunt", "whore", "slut", "fag", "nigger", "retard", "idiot",
    "moron", "stupid",
)

_PROFANITY_PATTERNS = [re.compile(rf"\b{word}\b", re.IGNORECASE) for word in PROFANITY]

_GIBBERISH_PATTERNS = [
    re.compile(r"(.)\1{4,}"),                       # 5+ repeated characters
    re.compile(r"^[qwerty]{5,}$"),                  # keyboard mashing
    re.compile(r"^[asdfgh]{5,}$"),
    re.compile(r"^[zxcvbn]{5,}$"),
    re.compile(r"[bcdfghjklmnpqrstvwxyz]{8,}"),     # long consonant runs
    re.compile(r"^[^aeiou\s]{15,}$"),
]

_VOWELS = re.compile(r"[aeiou]")
_CONSONANTS = re.compile(r"[bcdfghjklmnpqrstvwxyz]")
_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PUNCTUATION = re.compile(r"[.!?,;:]")
_NON_WORD = re.compile(r"[^\w\s]")


class TextQualityAnalyzer:
    """Scores free text on a 0-100 scale"""

    def is_gibberish(self, text: str) -> bool:
        if not text or len(text.strip()) < 3:
            return False

        clean = text.lower().strip()

        if any(pattern.search(clean) for pattern in _GIBBERISH_PATTERNS):
            return True

        vowels = len(_VOWELS.findall(clean))
        consonants = len(_CONSONANTS.findall(clean))

        if vowels == 0 and len(clean) > 10:
            return True

        if len(clean) > 15 and consonants > vowels * 4:
            return True

        words = clean.split()
        if len(words) > 3:
            suspicious = [
                word for word in words
                if len(word) > 8 and len(set(word)) < len(word) / 3
            ]
            if len(suspicious) > len(words) * 0.3:
                return True

        return False

    def has_profanity(self, text: str) -> bool:
        if not text:
            return False
        return any(pattern.search(text) for pattern in _PROFANITY_PATTERNS)

    def filter_profanity(self, text: str) -> str:
        """Replace profane words with asterisks"""
        if not text:
            return text
        for pattern in _PROFANITY_PATTERNS:
            text = pattern.sub(lambda match: "*" * len(match.group(0)), text)
        return text

    def calculate_quality_score(self, text: str) -> int:
        """
        Quality score for a piece of text

        Args:
            text: Entry text

        Returns:
            Integer score clamped to 0-100; empty text scores 0
        """
        if not text or not text.strip():
            return 0

        score = 50
        words = text.split()
        word_count = len(words)
        sentences = [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]

        if 20 <= word_count <= 200:
            score += 15
        elif 10 <= word_count < 20:
            score += 10
        elif word_count > 200:
            score += 5
        else:
            score -= 10

        if len(sentences) >= 2:
            score += 10

        if self.is_gibberish(text):
            score -= 30

        if self.has_profanity(text):
            score -= 5

        unique_words = {word.lower() for word in words}
        diversity = len(unique_words) / word_count if word_count else 0
        if diversity > 0.7:
            score += 15
        elif diversity > 0.5:
            score += 10
        elif diversity < 0.3:
            score -= 10

        capitalized = [s for s in sentences if s.strip()[:1].isupper()]
        if sentences and len(capitalized) / len(sentences) > 0.7:
            score += 5

        if len(_PUNCTUATION.findall(text)) >= word_count * 0.1:
            score += 5

        return int(round(max(0, min(100, score))))

    def extract_keywords(self, text: str, limit: int = 10) -> List[str]:
        """Most frequent non-stop words of length 3+"""
        if not text:
            return []

        words = [
            word for word in _NON_WORD.sub(" ", text.lower()).split()
            if len(word) >= 3 and word not in STOP_WORDS
        ]
        return [word for word, _ in Counter(words).most_common(limit)]

    def analyze_text(self, text: str) -> Dict[str, Any]:
        """Combined quality report"""
        return {
            "quality_score": self.calculate_quality_score(text),
            "is_gibberish": self.is_gibberish(text),
            "has_profanity": self.has_profanity(text),
            "keywords": self.extract_keywords(text, 5),
            "word_count": len(text.split()) if text else 0,
            "filtered_text": self.filter_profanity(text),
        }


# Global analyzer instance
text_quality_analyzer = TextQualityAnalyzer()
