"""blogdesk: 게시글/이미지/변경 이력을 관리하는 블로그 CMS 백엔드입니다."""

__version__ = "1.0.0"
