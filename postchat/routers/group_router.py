import json
from fastapi import APIRouter, Depends, File, Form, UploadFile
from typing import List, Optional
from ..services import GroupService, MediaClassifier, get_media_classifier
from ..schemas import GroupMembershipEdit, GroupProfilePublic, GroupPublic
from ..models import User
from ..security import get_current_user
from ..errors import ValidationError
from ..utils import map_group_to_public_dict

router = APIRouter(tags=["Nhóm"])


def parse_member_ids(raw_ids: Optional[List[str]]) -> List[str]:
    """
    memberIds trong form có thể gửi lặp lại từng trường, dạng chuỗi JSON
    hoặc chuỗi phân tách bằng dấu phẩy.
    """
    member_ids = []
    for raw in raw_ids or []:
        raw = raw.strip()
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError:
                raise ValidationError("memberIds không phải là JSON hợp lệ.")
            if not isinstance(parsed, list):
                raise ValidationError("memberIds phải là một mảng.")
            member_ids.extend(str(v) for v in parsed)
        else:
            member_ids.extend(part for part in raw.split(","))
    return member_ids


async def _upload_group_image(image: Optional[UploadFile], classifier: MediaClassifier) -> Optional[str]:
    if image is None or not image.filename:
        return None
    upload = await classifier.accept(image, categories=("image",), folder="group_images")
    return upload.url


@router.post("", response_model=GroupPublic, status_code=201)
async def create_group(
    memberIds: List[str] = Form(...),
    name: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    classifier: MediaClassifier = Depends(get_media_classifier),
    current_user: User = Depends(get_current_user)
):
    """Tạo nhóm chat mới; người tạo tự động là thành viên."""
    member_ids = parse_member_ids(memberIds)
    # Kiểm tra danh sách thành viên trước khi upload ảnh
    await GroupService.validate_invites(str(current_user.id), member_ids)

    image_url = await _upload_group_image(image, classifier)
    group = await GroupService.create_group(str(current_user.id), member_ids, name=name, image_url=image_url)
    return map_group_to_public_dict(group)

@router.put("", response_model=GroupPublic)
async def edit_group_members(
    edit_data: GroupMembershipEdit,
    current_user: User = Depends(get_current_user)
):
    """Thêm hoặc xóa thành viên nhóm (chỉ người tạo nhóm)."""
    group = await GroupService.edit_membership(
        edit_data.groupId,
        str(current_user.id),
        edit_data.type,
        edit_data.memberIds,
        expected_version=edit_data.version
    )
    return map_group_to_public_dict(group)

@router.put("/profile", response_model=GroupProfilePublic)
async def update_group_profile(
    groupId: str = Form(...),
    name: Optional[str] = Form(None),
    imageUrl: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    classifier: MediaClassifier = Depends(get_media_classifier),
    current_user: User = Depends(get_current_user)
):
    """
    Cập nhật tên và/hoặc ảnh nhóm.
    Ảnh có thể là file upload (image) hoặc URL có sẵn (imageUrl).
    """
    group = await GroupService.get_group(groupId)
    # Kiểm tra quyền trước khi upload ảnh
    GroupService.check_profile_editor(group, str(current_user.id), current_user.isAdmin)

    uploaded_url = await _upload_group_image(image, classifier)
    group = await GroupService.update_profile(
        groupId,
        str(current_user.id),
        name=name,
        image_url=uploaded_url or imageUrl,
        actor_is_admin=current_user.isAdmin
    )
    return GroupProfilePublic(groupId=str(group.id), name=group.name, image=group.imageUrl)

@router.delete("/{group_id}")
async def delete_group(
    group_id: str,
    current_user: User = Depends(get_current_user)
):
    """Xóa nhóm cùng toàn bộ tin nhắn (chỉ người tạo nhóm)."""
    group = await GroupService.delete_group(group_id, str(current_user.id))
    return {"groupId": str(group.id), "deleted": True}
