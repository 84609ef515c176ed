"""
Built-in Profiles

Static profile table used when the profile store is unavailable or does not
know a profile. Keyed exactly like the store: prompts[step][language].
"""

from typing import Dict, List, Optional

DEFAULT_PROFILE_ID = "youtube-explainer"
SCENE_PROFILE_ID = "co-tich-nguoc"


YOUTUBE_EXPLAINER = {
    "id": DEFAULT_PROFILE_ID,
    "name": {"en": "YouTube Explainer", "vi": "Video Giải Thích YouTube"},
    "description": {
        "en": "Clear, friendly explainer videos for a general audience.",
        "vi": "Video giải thích rõ ràng, thân thiện cho khán giả phổ thông.",
    },
    "scriptFormat": "simple",
    "prompts": {
        "idea": {
            "en": (
                "You are a YouTube content strategist. Propose video ideas that are "
                "specific, searchable and easy to film.\n\n"
                "Return ONLY a JSON array. Each element:\n"
                '{"id": "idea_1", "title": "Compelling title, max 60 chars", '
                '"hook": "One-sentence opener", "angle": "What makes this take unique"}'
            ),
            "vi": (
                "Bạn là chuyên gia chiến lược nội dung YouTube. Đề xuất ý tưởng video "
                "cụ thể, dễ tìm kiếm và dễ quay.\n\n"
                "Chỉ trả về một JSON array. Mỗi phần tử:\n"
                '{"id": "idea_1", "title": "Tiêu đề hấp dẫn, tối đa 60 ký tự", '
                '"hook": "Câu mở đầu một câu", "angle": "Góc nhìn độc đáo"}'
            ),
        },
        "outline": {
            "en": (
                "You are a video scriptwriter. Break the selected idea into 4-7 sections "
                "that flow from hook to payoff.\n\n"
                "Return ONLY a JSON array. Each element:\n"
                '{"id": "section_1", "title": "Section title", '
                '"points": ["Key point", "Key point"], "duration": "1:00"}'
            ),
            "vi": (
                "Bạn là biên kịch video. Chia ý tưởng đã chọn thành 4-7 phần nối tiếp "
                "từ hook đến kết luận.\n\n"
                "Chỉ trả về một JSON array. Mỗi phần tử:\n"
                '{"id": "section_1", "title": "Tiêu đề phần", '
                '"points": ["Ý chính", "Ý chính"], "duration": "1:00"}'
            ),
        },
        "script": {
            "en": (
                "You are a video scriptwriter. Write a spoken script that follows the "
                "outline section by section, conversational and concrete.\n\n"
                "Return ONLY a JSON object:\n"
                '{"intro": "...", "sections": [{"heading": "...", "content": "...", '
                '"visualNotes": "..."}], "outro": "...", "callToAction": "..."}'
            ),
            "vi": (
                "Bạn là biên kịch video. Viết lời thoại theo từng phần của dàn ý, "
                "tự nhiên và cụ thể.\n\n"
                "Chỉ trả về một JSON object:\n"
                '{"intro": "...", "sections": [{"heading": "...", "content": "...", '
                '"visualNotes": "..."}], "outro": "...", "callToAction": "..."}'
            ),
        },
        "metadata": {
            "en": (
                "You are a YouTube SEO specialist. Write metadata that maximizes "
                "click-through without clickbait.\n\n"
                "Return ONLY a JSON object:\n"
                '{"title": "...", "description": "...", "tags": ["..."], '
                '"thumbnailPrompt": "...", "estimatedDuration": "8:00"}'
            ),
            "vi": (
                "Bạn là chuyên gia SEO YouTube. Viết metadata tối ưu tỷ lệ nhấp "
                "mà không giật tít.\n\n"
                "Chỉ trả về một JSON object:\n"
                '{"title": "...", "description": "...", "tags": ["..."], '
                '"thumbnailPrompt": "...", "estimatedDuration": "8:00"}'
            ),
        },
    },
}


_SCENE_SHAPE = (
    '{"sceneNumber": 1, "block": "1", "psychologicalObjective": "...", '
    '"narrativeFunction": "...", "sceneDescription": "...", "context": "...", '
    '"subject": "...", "emotionalState": "...", "motion": "...", "camera": "...", '
    '"lighting": "...", "visualSymbolism": "...", "audioEffect": "...", '
    '"voiceOver": "20-30 words of narration", "feasibilityLevel": "easy|medium|hard", '
    '"feasibilityNote": "...", "suggestion": "...", "imagePrompt": "...", '
    '"videoPrompt": "..."}'
)

CO_TICH_NGUOC = {
    "id": SCENE_PROFILE_ID,
    "name": {"en": "Reversed Fairy Tales", "vi": "Cổ Tích Ngược"},
    "description": {
        "en": "Documentary-style retellings with psychological depth, scene by scene.",
        "vi": "Kể lại truyện cổ tích theo phong cách tài liệu, chiều sâu tâm lý, từng cảnh.",
    },
    "scriptFormat": "scenes",
    "prompts": {
        "idea": {
            "en": (
                "You are a creative director for documentary-style storytelling videos "
                "that retell fairy tales from an unexpected side.\n\n"
                "Return ONLY a JSON array. Each element:\n"
                '{"id": "idea_1", "title": "Title, max 60 chars", '
                '"hook": "One-sentence opener", "angle": "The reversed perspective"}\n\n'
                "Topic: {topic}"
            ),
            "vi": (
                "Bạn là giám đốc sáng tạo cho video kể chuyện phong cách tài liệu, "
                "kể lại truyện cổ tích từ một góc khuất.\n\n"
                "Chỉ trả về một JSON array. Mỗi phần tử:\n"
                '{"id": "idea_1", "title": "Tiêu đề, tối đa 60 ký tự", '
                '"hook": "Câu mở đầu", "angle": "Góc nhìn ngược"}\n\n'
                "Chủ đề: {topic}"
            ),
        },
        "outline": {
            "en": (
                "Create a documentary outline of 5 blocks: opening and context, rising "
                "tension, crisis, transformation, resolution.\n\n"
                "Return ONLY a JSON array with one element per block:\n"
                '{"id": "section_1", "title": "Block title", '
                '"points": ["Brief scene description", "..."], "duration": "1:20"}\n\n'
                "Selected idea: {selectedIdea}"
            ),
            "vi": (
                "Tạo dàn ý tài liệu gồm 5 block: mở đầu và bối cảnh, căng thẳng dâng cao, "
                "khủng hoảng, chuyển hóa, kết thúc.\n\n"
                "Chỉ trả về một JSON array, mỗi phần tử là một block:\n"
                '{"id": "section_1", "title": "Tiêu đề block", '
                '"points": ["Mô tả ngắn cảnh", "..."], "duration": "1:20"}\n\n'
                "Ý tưởng đã chọn: {selectedIdea}"
            ),
        },
        "script": {
            "en": (
                "Write the full scene script. One scene per outline point, every scene "
                "with all 19 fields. Image prompts must be cinematic and detailed.\n\n"
                'Return ONLY a JSON object: {"scenes": [' + _SCENE_SHAPE + "]}\n\n"
                "Outline: {outline}"
            ),
            "vi": (
                "Viết kịch bản cảnh đầy đủ. Mỗi ý trong dàn ý là một cảnh, mỗi cảnh "
                "đủ 19 trường. Prompt hình ảnh phải chi tiết, điện ảnh.\n\n"
                'Chỉ trả về một JSON object: {"scenes": [' + _SCENE_SHAPE + "]}\n\n"
                "Dàn ý: {outline}"
            ),
        },
        "metadata": {
            "en": (
                "Generate YouTube metadata for this documentary.\n\n"
                "Return ONLY a JSON object:\n"
                '{"title": ["Option 1", "Option 2", "Option 3"], "description": "...", '
                '"tags": ["..."], "thumbnailPrompt": ["Concept 1", "Concept 2"], '
                '"estimatedDuration": "6:30"}'
            ),
            "vi": (
                "Tạo metadata YouTube cho video tài liệu này.\n\n"
                "Chỉ trả về một JSON object:\n"
                '{"title": ["Lựa chọn 1", "Lựa chọn 2", "Lựa chọn 3"], "description": "...", '
                '"tags": ["..."], "thumbnailPrompt": ["Ý tưởng 1", "Ý tưởng 2"], '
                '"estimatedDuration": "6:30"}'
            ),
        },
    },
}


BUILTIN_PROFILES: Dict[str, dict] = {
    profile["id"]: profile for profile in (YOUTUBE_EXPLAINER, CO_TICH_NGUOC)
}


def get_builtin_profile(profile_id: str) -> Optional[dict]:
    return BUILTIN_PROFILES.get(profile_id)


def list_builtin_profiles() -> List[dict]:
    """Summaries of the built-in profiles, for listing in the CLI."""
    return [
        {
            "id": profile["id"],
            "name": profile["name"],
            "scriptFormat": profile["scriptFormat"],
        }
        for profile in BUILTIN_PROFILES.values()
    ]
