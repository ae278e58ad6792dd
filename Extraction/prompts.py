"""
prompts.py

Arabic prompt templates for the LLM-backed repair stages, and the
Arabic messages shown to users in place of extracted text.
"""

# -----------------------------
# User-facing messages
# -----------------------------
NO_TEXT_FOUND_MESSAGE = "[صورة - لم يتم العثور على نص قابل للقراءة في الصورة]"
EXTRACTION_FAILED_MESSAGE = "[صورة - فشل في استخراج النص من الصورة]"
OCR_RESULT_PREFIX = "[نص مستخرج من الصورة باستخدام OCR المحسّن]:\n"
UNSUPPORTED_FILE_MESSAGE = "[ملف: {file_name}] - نوع الملف غير مدعوم للقراءة التلقائية"
PDF_READ_FAILED_MESSAGE = "فشل في قراءة ملف PDF"
DOCX_READ_FAILED_MESSAGE = "فشل في قراءة ملف Word"
RATE_LIMITED_MESSAGE = "تم تجاوز حد الاستخدام. يرجى المحاولة لاحقاً."
INVALID_KEY_MESSAGE = "خطأ في مفتاح API - تحقق من إعدادات الخادم"
NO_API_KEY_MESSAGE = "لا يوجد مفتاح API متاح - يرجى إضافة مفتاح في متغيرات البيئة"

SENTINEL_MESSAGES = (NO_TEXT_FOUND_MESSAGE, EXTRACTION_FAILED_MESSAGE)


# -----------------------------
# OCR correction
# -----------------------------
CORRECTION_SYSTEM_PROMPT = (
    "أنت مصحح لغوي متخصص في تصحيح النصوص العربية المستخرجة من OCR. "
    "أخرج النص المصحح فقط."
)

CORRECTION_USER_PROMPT = """أنت نظام متخصص في تصحيح النص العربي المستخرج من OCR.

النص قد يحتوي على:
- أحرف مكسورة أو تالفة
- أخطاء إملائية
- مسافات غير صحيحة
- كلمات متصلة أو منفصلة بشكل خاطئ
- خلط بين أحرف عربية متشابهة (ي/ى، ه/ة، ب/ت/ث، ل/لا)

مهمتك:
1. تصحيح الأخطاء الإملائية والحروف فقط
2. لا تغير المعنى الأصلي
3. لا تضف معلومات جديدة
4. حافظ على البنية والقصد الأصلي
5. أزل الرموز غير القابلة للقراءة أو استبدلها حسب السياق

أخرج النص المصحح فقط بدون أي شرح أو تعليق.

النص الخام من OCR:
{raw_text}"""


# -----------------------------
# Multi-page merge
# -----------------------------
MERGE_SYSTEM_PROMPT = "أنت متخصص في معالجة النصوص العربية من PDF. أخرج النص المنظف فقط."

MERGE_USER_PROMPT = """أنت نظام متخصص في دمج النصوص المستخرجة من ملفات PDF متعددة الصفحات.

النص التالي تم استخراجه من ملف PDF يحتوي على {page_count} صفحة.
النص قد يحتوي على:
- جمل مقطوعة بين الصفحات
- رؤوس وتذييلات متكررة في كل صفحة
- أرقام صفحات
- عناوين متكررة

مهمتك:
1. دمج جميع الصفحات في نص عربي واحد متماسك
2. إعادة ربط الجمل المقطوعة بين الصفحات بشكل صحيح
3. إزالة رؤوس الصفحات والتذييلات المتكررة وأرقام الصفحات
4. الحفاظ على المعنى الأصلي تماماً

أخرج النص المدموج والمنظف فقط.

النص الخام:
{raw_text}"""

CHUNK_SYSTEM_PROMPT = "نظف النص وأخرجه مباشرة بدون شرح."

CHUNK_USER_PROMPT = """نظف هذا النص العربي المستخرج من PDF:
- أزل أرقام الصفحات والرؤوس والتذييلات المتكررة
- صحح الجمل المقطوعة
- حافظ على المحتوى الأصلي

{position_note}

النص:
{chunk}"""

CHUNK_FIRST_NOTE = "هذا بداية المستند."
CHUNK_LAST_NOTE = "هذا نهاية المستند."


# -----------------------------
# Heading detection
# -----------------------------
STRUCTURE_SYSTEM_PROMPT = (
    "أنت محرر نصوص محترف. أخرج JSON فقط بدون أي نص إضافي. "
    "المصفوفة يجب أن تحتوي على كائنات بالحقول: type, title, content"
)

STRUCTURE_USER_PROMPT = """أنت نظام ذكي متخصص في تحليل النصوص العربية المستخرجة من المستندات واكتشاف هيكل المستند تلقائياً.

المهمة:
تحليل النص العربي التالي واكتشاف:
- العناوين الرئيسية
- العناوين الفرعية
- إعادة بناء الهيكل المنطقي للمستند

ملاحظات مهمة:
- النص قد يحتوي على أخطاء OCR
- قد تكون المسافات غير متسقة
- لا توجد معلومات تنسيق
- يجب استنتاج الهيكل من المحتوى وليس التنسيق

قواعد اكتشاف العناوين:
1. جمل التعريف: "تعريف..."، "مفهوم..."، "ما هو..."
2. التعدادات: "أولاً"، "ثانياً"، "أنواع"، "مراحل"، "خصائص"
3. انتقالات الموضوع: "في هذا الفصل"، "ننتقل إلى"، "سنتناول"

صيغة الإخراج (JSON فقط):
[
  {{"type": "main", "title": "العنوان الرئيسي", "content": "محتوى القسم..."}},
  {{"type": "sub", "title": "العنوان الفرعي", "content": "محتوى القسم الفرعي..."}}
]

النص المطلوب تحليله:
{raw_text}"""


def chunk_position_note(is_first: bool, is_last: bool) -> str:
    """Tell the model where in the document a chunk sits."""
    notes = []
    if is_first:
        notes.append(CHUNK_FIRST_NOTE)
    if is_last:
        notes.append(CHUNK_LAST_NOTE)
    return " ".join(notes)
