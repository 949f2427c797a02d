# penwise/prompts.py
"""
Content types and the system prompt built from them.

Each content type pairs a fixed instruction sentence with the schema of the
detail fields a user can fill in. New types are added with
`get_registry().register(...)`; the relay only ever looks them up.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

BASE_INSTRUCTION = 'You are an expert AI content writer. '

SAMPLE_MODE_INSTRUCTION = (
    'Generate content with placeholders like [Your Name], [Company Name], etc. '
    'for missing information. '
)

STRICT_DETAILS_INSTRUCTION = (
    'CRITICAL: Use ONLY the specific user-provided details. NEVER use placeholders '
    'like [Your Name], [Address], [Company], etc. If information is missing, create '
    'realistic example content or skip that section entirely. '
)

FALLBACK_INSTRUCTION = "Generate high-quality written content based on the user's requirements."

DETAILS_HEADER = '\n\nUser Details:\n'
DETAILS_FOOTER = '\nIMPORTANT: Use these exact details in the content. Do not add placeholders.'


@dataclass
class Field:
    """One user-supplied detail for a content type"""
    name: str
    label: str
    kind: str = 'text'  # text, textarea, email, tel
    placeholder: str = ''
    required: bool = False

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'label': self.label,
            'type': self.kind,
            'placeholder': self.placeholder,
            'required': self.required,
        }


@dataclass
class ContentType:
    tag: str
    label: str
    description: str
    instruction: str
    fields: List[Field] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'id': self.tag,
            'title': self.label,
            'description': self.description,
            'fields': [f.to_dict() for f in self.fields],
        }


class ContentTypeRegistry:
    def __init__(self):
        self.types: Dict[str, ContentType] = {}

    def register(self, content_type: ContentType) -> None:
        self.types[content_type.tag] = content_type

    def get(self, tag: str) -> Optional[ContentType]:
        return self.types.get(tag)

    def instruction_for(self, tag: str) -> str:
        content_type = self.get(tag)
        return content_type.instruction if content_type else FALLBACK_INSTRUCTION

    def label_for(self, tag: str, default: str = 'Document') -> str:
        content_type = self.get(tag)
        return content_type.label if content_type else default

    def list_all(self) -> List[ContentType]:
        return list(self.types.values())


BUILTIN_TYPES = [
    ContentType(
        tag='blog',
        label='Blog Post',
        description='SEO-optimized articles and blog content',
        instruction=('Create SEO-optimized blog posts with engaging titles, meta descriptions, '
                     'and well-structured content with headings.'),
        fields=[
            Field('topic', 'Main Topic', placeholder='e.g., AI in Healthcare', required=True),
            Field('targetAudience', 'Target Audience', placeholder='e.g., Healthcare professionals'),
            Field('keyPoints', 'Key Points to Cover', 'textarea', 'List main points you want covered'),
        ],
    ),
    ContentType(
        tag='email',
        label='Professional Email',
        description='Business emails and correspondence',
        instruction=('Write professional and effective emails with clear subject lines '
                     'and well-formatted body text.'),
        fields=[
            Field('recipientName', 'Recipient Name', placeholder='John Smith'),
            Field('senderName', 'Your Name', placeholder='Jane Doe', required=True),
            Field('subject', 'Subject', placeholder='Meeting Request', required=True),
            Field('purpose', 'Purpose', 'textarea', "What's the main goal of this email?", True),
        ],
    ),
    ContentType(
        tag='letter',
        label='Business Letter',
        description='Formal letters and proposals',
        instruction=('Compose formal business letters with proper formatting, professional '
                     'language, and clear structure.'),
        fields=[
            Field('senderName', 'Your Full Name', placeholder='John Doe', required=True),
            Field('senderAddress', 'Your Address', placeholder='123 Main St, City, State ZIP'),
            Field('senderPhone', 'Your Phone', 'tel', '+1 234 567 8900'),
            Field('senderEmail', 'Your Email', 'email', 'john@example.com'),
            Field('recipientName', 'Recipient Name', placeholder='Jane Smith', required=True),
            Field('recipientTitle', 'Recipient Title', placeholder='Hiring Manager'),
            Field('companyName', 'Company Name', placeholder='ABC Corporation'),
            Field('recipientAddress', 'Recipient Address', placeholder='456 Business Ave, City, State ZIP'),
            Field('purpose', 'Purpose of Letter', 'textarea', 'What is this letter about?', True),
        ],
    ),
    ContentType(
        tag='resume',
        label='Resume',
        description='Professional CV and cover letters',
        instruction=('Generate professional resume content with compelling summaries, '
                     'achievement-focused bullet points, and industry-appropriate language.'),
        fields=[
            Field('fullName', 'Full Name', placeholder='John Doe', required=True),
            Field('email', 'Email', 'email', 'john@example.com', True),
            Field('phone', 'Phone', 'tel', '+1 234 567 8900', True),
            Field('location', 'Location', placeholder='New York, NY', required=True),
            Field('jobTitle', 'Target Job Title', placeholder='Senior Software Engineer', required=True),
            Field('experience', 'Work Experience', 'textarea',
                  'List your work history with company names, roles, and achievements', True),
            Field('education', 'Education', 'textarea', 'Your degrees, schools, and graduation years', True),
            Field('skills', 'Skills', 'textarea', 'Technical and soft skills', True),
        ],
    ),
    ContentType(
        tag='essay',
        label='Essay',
        description='Academic essays and assignments',
        instruction=('Write well-researched academic essays with clear thesis statements, '
                     'supporting arguments, and proper structure.'),
        fields=[
            Field('topic', 'Essay Topic', placeholder='The Impact of Social Media on Democracy', required=True),
            Field('thesisStatement', 'Thesis Statement', 'textarea', 'Your main argument or position', True),
            Field('keyArguments', 'Key Arguments', 'textarea', 'Main points that support your thesis'),
            Field('sources', 'Sources/References', 'textarea', 'List sources you want cited or referenced'),
        ],
    ),
    ContentType(
        tag='marketing',
        label='Marketing Copy',
        description='Product descriptions and ad copy',
        instruction=('Create persuasive marketing copy that drives action, highlights benefits, '
                     'and connects with the target audience.'),
        fields=[
            Field('productName', 'Product/Service Name', placeholder='Premium Coffee Subscription', required=True),
            Field('targetAudience', 'Target Audience', placeholder='Coffee enthusiasts aged 25-45', required=True),
            Field('keyBenefits', 'Key Benefits', 'textarea',
                  'What problems does it solve? What value does it provide?', True),
            Field('callToAction', 'Call to Action', placeholder='Sign up today', required=True),
            Field('uniqueValue', 'Unique Value Proposition', 'textarea',
                  'What makes this different from competitors?'),
        ],
    ),
]

_registry: Optional[ContentTypeRegistry] = None


def get_registry() -> ContentTypeRegistry:
    """Get or create the shared content type registry"""
    global _registry
    if _registry is None:
        _registry = ContentTypeRegistry()
        for content_type in BUILTIN_TYPES:
            _registry.register(content_type)
    return _registry


def _filled(user_details):
    return [(key, value) for key, value in (user_details or {}).items() if value]


def compose_system_prompt(content_type, tone='', sample_mode=False, registry=None):
    registry = registry or get_registry()
    prompt = BASE_INSTRUCTION
    prompt += SAMPLE_MODE_INSTRUCTION if sample_mode else STRICT_DETAILS_INSTRUCTION
    prompt += registry.instruction_for(content_type)
    if tone:
        prompt += f' Use a {tone} tone.'
    return prompt


def compose_details_block(sample_mode=False, user_details=None):
    filled = _filled(user_details)
    # sample mode always wins over supplied details
    if sample_mode or not filled:
        return ''
    lines = ''.join(f'{key}: {value}\n' for key, value in filled)
    return DETAILS_HEADER + lines + DETAILS_FOOTER


def compose_user_message(prompt, sample_mode=False, user_details=None):
    return prompt + compose_details_block(sample_mode, user_details)


def missing_required_fields(content_type, user_details=None, registry=None):
    registry = registry or get_registry()
    entry = registry.get(content_type)
    if entry is None:
        return []
    details = user_details or {}
    return [f.name for f in entry.fields if f.required and not details.get(f.name)]


@dataclass
class ComposedPrompt:
    system: str
    user: str

    def messages(self) -> List[Dict[str, str]]:
        return [
            {'role': 'system', 'content': self.system},
            {'role': 'user', 'content': self.user},
        ]


def compose(content_type, prompt, tone='', sample_mode=False, user_details=None, registry=None):
    """Build the system instruction and the user message sent upstream."""
    return ComposedPrompt(
        system=compose_system_prompt(content_type, tone, sample_mode, registry),
        user=compose_user_message(prompt, sample_mode, user_details),
    )
