"""
Lexicon and pattern store for the text-analytics cascade.

Static per-language data: sentiment weights, contextual modifiers, emotion
words, urgency/time/task patterns and the keyword tables used by meeting and
team analysis. Regular expressions are compiled once at import.
"""

import re
from typing import Dict, List, Pattern, Tuple

# Sentiment weights for ideographic (Chinese) text
CHINESE_SENTIMENT: Dict[str, float] = {
    # positive
    "好": 2, "很好": 3, "棒": 2, "优秀": 3, "完美": 3, "满意": 2,
    "高兴": 2, "开心": 2, "兴奋": 3, "喜欢": 2, "爱": 3, "赞": 2,
    "支持": 1, "同意": 1, "可以": 0.5, "不错": 1.5, "顺利": 2,
    "成功": 3, "胜利": 3, "完成": 1, "达成": 2, "实现": 1.5,
    "感谢": 2, "谢谢": 1.5, "厉害": 2, "给力": 2,
    # negative
    "不好": -2, "糟糕": -3, "差": -2, "失败": -3, "错误": -2, "问题": -2,
    "困难": -1.5, "麻烦": -1.5, "复杂": -1, "难": -1, "烦": -2,
    "恶心": -3, "生气": -2, "愤怒": -3, "不满": -2, "失望": -2,
    "沮丧": -2, "担心": -1.5, "害怕": -2, "恐惧": -3, "紧张": -1.5,
    "焦虑": -2, "压力": -1.5, "累": -1, "崩溃": -3, "延期": -1.5,
    # work context
    "紧急": -0.5, "急": -0.5, "赶紧": -0.5, "快": -0.2, "慢": -0.5,
    "立即": 0, "马上": 0, "现在": 0, "今天": 0, "明天": 0,
}

# Domain weights layered over the polarity scorer's own lexicon for English
ENGLISH_SENTIMENT: Dict[str, float] = {
    "urgent": -0.5, "asap": -0.5, "blocker": -2.0, "blocked": -1.5,
    "delay": -1.5, "delayed": -1.5, "overdue": -2.0, "bug": -1.0,
    "outage": -2.5, "shipped": 2.0, "launched": 2.0, "resolved": 1.5,
    "done": 1.0, "lgtm": 2.0, "kudos": 2.5,
}

CHINESE_NEGATIONS = frozenset(["不", "没", "没有", "未", "非", "无", "别", "不是", "不会", "不要", "不能"])
ENGLISH_NEGATIONS = frozenset([
    "not", "no", "never", "nothing", "nobody", "nowhere", "neither", "nor", "none", "cannot",
])

CHINESE_INTENSIFIERS = frozenset(["很", "非常", "特别", "极其", "太", "十分", "超级", "相当"])
ENGLISH_INTENSIFIERS = frozenset([
    "very", "extremely", "really", "quite", "rather", "pretty", "fairly", "so", "super", "incredibly",
])

EMOTICON_PATTERN: Pattern = re.compile(
    r"(?::|;|=)(?:-)?(?:\)|\(|D|P|p|O|o|\|)"
    r"|[\U0001F600-\U0001F64F\U0001F300-\U0001F5FF\U0001F680-\U0001F6FF\U00002600-\U000027BF]"
)

# Chinese emotion words -> per-emotion weights
EMOTION_WORDS: Dict[str, Dict[str, float]] = {
    "开心": {"joy": 2}, "高兴": {"joy": 2}, "兴奋": {"joy": 2, "surprise": 1}, "满足": {"joy": 1},
    "生气": {"anger": 2}, "愤怒": {"anger": 3}, "恼火": {"anger": 2}, "不满": {"anger": 1},
    "担心": {"fear": 2, "sadness": 1}, "害怕": {"fear": 3}, "紧张": {"fear": 2},
    "焦虑": {"fear": 2, "sadness": 1},
    "难过": {"sadness": 3}, "伤心": {"sadness": 3}, "失望": {"sadness": 2}, "沮丧": {"sadness": 2},
    "惊讶": {"surprise": 2}, "意外": {"surprise": 1},
}

# Urgency indicators; any match in a message counts once per pattern hit
URGENCY_PATTERNS: List[Pattern] = [
    re.compile(r"紧急|急|ASAP|urgent|critical|immediately", re.IGNORECASE),
    re.compile(r"马上|立即|立刻|现在|赶快|尽快|right away|right now", re.IGNORECASE),
    re.compile(r"火烧眉毛|十万火急|燃眉之急"),
    re.compile(r"高优先级|最高优先级|\bP0\b|\bP1\b|high priority|top priority", re.IGNORECASE),
]
CRITICAL_URGENCY: Pattern = re.compile(r"紧急|critical|\bP0\b", re.IGNORECASE)

# Time references
TIME_PATTERNS: List[Pattern] = [
    re.compile(r"今天|明天|后天|昨天|前天"),
    re.compile(r"\b(?:today|tonight|tomorrow|yesterday|eod|end of day|end of the day)\b", re.IGNORECASE),
    re.compile(r"本周|下周|上周|这周|下个月|上个月|月底"),
    re.compile(r"\b(?:this week|next week|last week|end of week|eow|next month)\b", re.IGNORECASE),
    re.compile(r"\d{4}[-/]\d{1,2}[-/]\d{1,2}|\d{1,2}月\d{1,2}[日号]"),
    re.compile(r"(?:周|星期)[一二三四五六日天]"),
    re.compile(r"\b(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b", re.IGNORECASE),
    re.compile(r"\d{1,2}[:：]\d{2}|\d{1,2}点(?:半|\d{1,2}分)?"),
    re.compile(r"上午|下午|晚上|早上|中午"),
]
SAME_DAY_PATTERN: Pattern = re.compile(r"今天|马上|立即|现在|today|tonight|\beod\b|end of (?:the )?day|\bnow\b", re.IGNORECASE)
NEXT_DAY_PATTERN: Pattern = re.compile(r"明天|tomorrow", re.IGNORECASE)
SPECIFIC_DATE_PATTERN: Pattern = re.compile(r"(\d{4})[-/](\d{1,2})[-/](\d{1,2})")
CHINESE_DATE_PATTERN: Pattern = re.compile(r"(\d{1,2})月(\d{1,2})[日号]")
THIS_WEEK_PATTERN: Pattern = re.compile(r"本周|这周|this week|end of week|\beow\b", re.IGNORECASE)

# Task type keywords; first type whose words appear wins
TASK_TYPE_KEYWORDS: Dict[str, List[str]] = {
    "decision": ["决定", "选择", "确定", "评估", "审批", "同意", "拒绝",
                 "decide", "choose", "approve", "evaluate", "sign off"],
    "follow_up": ["跟进", "追踪", "检查", "确认", "验证", "回复",
                  "follow up", "follow-up", "check on", "verify", "confirm", "reply"],
    "reminder": ["提醒", "记住", "注意", "别忘了", "记得", "remind", "remember", "don't forget"],
    "question": ["问", "询问", "咨询", "了解", "调研", "ask", "find out", "investigate"],
    "action": ["做", "完成", "开发", "实现", "处理", "解决", "修复", "优化",
               "do", "finish", "complete", "build", "implement", "fix", "write", "prepare",
               "send", "update", "deploy", "review", "submit"],
}
ACTION_VERBS = frozenset(TASK_TYPE_KEYWORDS["action"])

COMPLEXITY_KEYWORDS: Dict[str, List[str]] = {
    "complex": ["架构", "重构", "迁移", "集成", "规划", "战略",
                "architecture", "refactor", "migrate", "migration", "integrate", "strategy"],
    "moderate": ["分析", "设计", "开发", "测试", "优化", "调研",
                 "analyze", "design", "develop", "test", "optimize", "research"],
    "simple": ["检查", "确认", "发送", "回复", "更新", "记录",
               "check", "confirm", "send", "reply", "update", "note"],
}

ROLE_WORDS: List[str] = [
    "经理", "主管", "负责人", "开发", "设计师", "产品", "测试", "运营",
    "manager", "lead", "owner", "developer", "designer", "pm", "qa", "ops",
]

MENTION_PATTERN: Pattern = re.compile(r"(?<![\w.])@([\w\-]+(?:\.[\w\-]+)*)")
CHINESE_OWNER_PATTERN: Pattern = re.compile(r"请([一-鿿\w]{1,10}?)负责")

# Extraction patterns per language; group 1 is the task description
ENGLISH_TASK_PATTERNS: List[Pattern] = [
    re.compile(r"\b(?:need|needs|should|must|have to|has to)\s+(?:@[\w.\-]+\s+)?(?:to\s+)?([^.!?\n]{5,80})", re.IGNORECASE),
    re.compile(r"\b(?:please|can you|could you)\s+([^.!?\n]{5,60})", re.IGNORECASE),
    re.compile(r"\b(?:todo|task|action item|action)\s*:\s*([^.!?\n]{5,80})", re.IGNORECASE),
]
CHINESE_TASK_PATTERNS: List[Pattern] = [
    re.compile(r"(?:需要|要|应该|必须)([^。！？\n]{2,50}?(?:完成|做|处理))"),
    re.compile(r"(?:请|帮忙)([^。！？\n]{2,30}?(?:一下|处理|解决))"),
    re.compile(r"(?:今天|明天|本周)([^。！？\n]{2,40}?(?:完成|交付))"),
]
DESCRIPTION_PUNCTUATION: Pattern = re.compile(r"[。！？；：，、,;:!?]")

# Entity patterns with fixed confidence
ENTITY_PATTERNS: List[Tuple[str, Pattern, float]] = [
    ("EMAIL", re.compile(r"[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}"), 0.95),
    ("URL", re.compile(r"https?://[^\s，。]+"), 0.9),
    ("PHONE", re.compile(r"(?<!\d)(?:\+?86[- ]?)?1[3-9]\d{9}(?!\d)|(?<!\d)\d{3}[- ]\d{3}[- ]\d{4}(?!\d)"), 0.85),
]
ORG_SUFFIX_PATTERN: Pattern = re.compile(r"[一-鿿]{2,10}(?:公司|集团|部门|团队|银行)|\b[A-Z][A-Za-z]+ (?:Inc|Corp|Ltd|LLC)\b")

# Team analysis vocabularies
STRESS_WORDS: List[str] = [
    "加班", "熬夜", "赶工", "来不及", "压力大", "忙死了", "累死了", "救命", "崩溃",
    "受不了", "要疯了", "要命", "紧急", "火烧眉毛",
    "overtime", "burnout", "burned out", "exhausted", "overwhelmed", "stressed", "crunch",
    "all-nighter", "no time",
]
TEAM_URGENCY_PATTERNS: List[Pattern] = [
    re.compile(r"紧急|急|马上|立刻|ASAP|火急|urgent|immediately", re.IGNORECASE),
    re.compile(r"今天.*?(?:必须|一定要|务必)"),
    re.compile(r"(?:老板|领导).*?要"),
    re.compile(r"\b(?:must|need to)\b.*\btoday\b", re.IGNORECASE),
]
MEETING_INDICATORS: List[str] = [
    "会议", "讨论", "同步", "对齐", "review", "standup", "汇报", "碰头", "聊聊", "过一下",
    "走查", "演示", "meeting", "discuss", "discussion", "sync", "demo", "retro",
]
DECISION_WORDS: List[str] = [
    "决定", "确定", "商定", "敲定", "定了", "就这样", "同意", "通过", "批准", "采用", "选择",
    "decided", "agreed", "approved", "let's go with", "we'll go with", "final call",
]
CONFLICT_WORDS: List[str] = [
    "不同意", "反对", "有问题", "不行", "争议",
    "disagree", "object", "conflict", "blocker", "unacceptable", "wrong",
]

CHINESE_STOPWORDS = frozenset([
    "的", "了", "在", "是", "我", "有", "和", "就", "不", "人", "都", "一", "一个", "上", "也",
    "很", "到", "说", "要", "去", "你", "会", "着", "没有", "看", "好", "自己", "这", "那",
    "我们", "你们", "他们", "这个", "那个", "吗", "吧", "呢", "啊",
])

IDEOGRAPHIC_CHAR: Pattern = re.compile(r"[一-鿿]")
ALPHABETIC_CHAR: Pattern = re.compile(r"[A-Za-z]")


def is_ideographic(char: str) -> bool:
    return "一" <= char <= "鿿"


def is_alphabetic(char: str) -> bool:
    return ("a" <= char <= "z") or ("A" <= char <= "Z")


def contains_any(text: str, words: List[str]) -> List[str]:
    """Return the words from ``words`` found in ``text`` (case-insensitive)."""
    lowered = text.lower()
    return [word for word in words if word.lower() in lowered]


def count_pattern_hits(text: str, patterns: List[Pattern]) -> List[str]:
    """Collect every match of every pattern, in pattern order."""
    hits = []
    for pattern in patterns:
        hits.extend(match.group(0) for match in pattern.finditer(text))
    return hits
