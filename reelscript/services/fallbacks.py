"""Fixed payloads returned when every generation attempt fails.

Each fallback satisfies the same shape as live output for its variant, so the
caller always receives a structurally valid response.
"""

from __future__ import annotations

from .payloads import ScriptEntry, ScriptPayload, SubPillarPayload

_QUICK_TIP = ScriptEntry(
    subtitle="نصيحة سريعة",
    content="<p>هذه نصيحة سريعة لتحسين يومك!</p><p>ابدأ بتحديد أولوياتك.</p><p>ركز على هدف واحد يوميا.</p>",
)


def fallback_script_set() -> ScriptPayload:
    return ScriptPayload(scripts=[ScriptEntry(_QUICK_TIP.subtitle, _QUICK_TIP.content) for _ in range(3)])


def fallback_automatic_scripts() -> ScriptPayload:
    return ScriptPayload(
        client_persona="Young Algerians, urban, animal lovers, interested in pet adoption",
        content_pillar="تبني الحيوانات الأليفة",
        sub_pillars=[
            "قصص نجاح تبني الحيوانات",
            "كيفاش تختار حيوان أليف",
            "واش لازم تعرف قبل تتبنى",
            "أخطاء شائعة عند التبني",
            "طريقة التعامل مع القطط الجديدة",
        ],
        scripts=[
            ScriptEntry(
                "حل مشكلة التبني",
                "<p>عندك مشكلة في تبني حيوان؟ الحل بسيط!</p><p>تطبيقنا يربطك بالحيوانات اللي تحتاج دار.</p>"
                "<p>حمّل التطبيق وابدأ اليوم!</p>",
            ),
            ScriptEntry(
                "نصيحة سريعة للتبني",
                "<p>حاب تتبنّى بسرعة؟ اختار بعناية!</p><p>تأكد من نمط حياتك يناسب الحيوان.</p>"
                "<p>تطبيقنا يساعدك تلقى المناسب.</p>",
            ),
            ScriptEntry(
                "ردود فعل التطبيق",
                "<p>سمعت على تطبيق التبني؟</p><p>ناس كثير جربوه وأحبوه!</p><p>شوف تجاربهم وجرب بنفسك.</p>",
            ),
            ScriptEntry(
                "نصيحتي للتبني",
                "<p>تبنيت قط وغيّر حياتي!</p><p>اختار حيوان يناسب وقتك ومكانك.</p><p>استعمل تطبيقنا باش تبدأ.</p>",
            ),
            ScriptEntry(
                "خطوات تبني سهلة",
                "<p>تبني حيوان في 3 خطوات!</p><p>حمّل التطبيق، اختار حيوان، تواصل مع المالك.</p>"
                "<p>كلش بسيط وسريع!</p>",
            ),
            ScriptEntry(
                "مفاجأة عن التبني",
                "<p>تعرف بلي التبني ينقذ حياة؟</p><p>كل حيوان يستاهل دار.</p><p>جرب تطبيقنا وغيّر حياة حيوان!</p>",
            ),
        ],
    )


def fallback_sub_pillars() -> SubPillarPayload:
    return SubPillarPayload(
        content_pillar="غير متوفر",
        sub_pillars=["عاود جرب من بعد شوية"],
        client_persona="Unable to generate persona due to processing error",
    )
