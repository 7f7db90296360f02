# karalis/loaders/iqm_animation.py
"""IQM v2 animation decoder.

Frame data is one flat array of uint16 values. A single cursor runs over
it: for every frame, for every pose, each of the ten channels starts at
the pose's channeloffset and, only when its bit is set in the pose mask,
consumes the next value scaled by channelscale.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from karalis import log
from karalis.animation.clip import ModelAnimation
from karalis.errors import InvalidParameterError, MalformedInputError, UnsupportedFormatError
from karalis.geombase import Transform
from karalis.loaders.iqm_format import (
    ANIM_STRUCT,
    IQM_LOOP,
    NUM_CHANNELS,
    BinaryView,
    IQMAnim,
    IQMPose,
    read_header,
    read_joints,
    read_poses,
    read_string,
    read_text,
)
from karalis.skeleton import Bone, compose_pose

# Bone name used when the file has no joint for a pose
PLACEHOLDER_BONE_NAME = "ANIMJOINTNAME"


def decode_pose_channels(pose: IQMPose, frame_data: Sequence[int], cursor: int) -> Tuple[List[float], int]:
    """
    Decode the ten channel values of one pose at one frame.

    Returns:
        (values, cursor advanced past the consumed frame values)

    Raises:
        MalformedInputError: mask asks for more values than frame_data holds
    """
    values = []
    for i in range(NUM_CHANNELS):
        value = pose.channeloffset[i]
        if pose.mask & (1 << i):
            if cursor >= len(frame_data):
                raise MalformedInputError("Animation frame data ends inside a pose")
            value += float(frame_data[cursor]) * pose.channelscale[i]
            cursor += 1
        values.append(value)
    return values, cursor


def _anim_bones(poses: List[IQMPose], joint_names: List[str]) -> List[Bone]:
    bones = []
    for j, pose in enumerate(poses):
        name = joint_names[j] if j < len(joint_names) else PLACEHOLDER_BONE_NAME
        bones.append(Bone(name, j, pose.parent))
    return bones


def load_iqm_animations(data: bytes) -> List[ModelAnimation]:
    """
    Decode every animation of an IQM v2 buffer.

    A buffer that is not IQM v2 gives an empty list and a warning.

    Raises:
        InvalidParameterError: data is None or empty
        MalformedInputError: a section lies outside the buffer
    """
    if data is None or len(data) == 0:
        raise InvalidParameterError("IQM buffer is empty")

    view = BinaryView(data)
    try:
        header = read_header(view)
    except UnsupportedFormatError as e:
        log.warn(f"[IqmAnimation] {e}")
        return []

    if header.num_anims == 0:
        return []

    text = read_text(view, header)
    joint_names = [read_string(text, j.name) for j in read_joints(view, header)]
    poses = read_poses(view, header)
    anims = [IQMAnim(*row) for row in view.unpack_array(ANIM_STRUCT, header.ofs_anims, header.num_anims, "anims")]
    frame_data = view.array(np.dtype("<u2"), header.ofs_frames, header.num_frames * header.num_framechannels, "frames")

    bones = _anim_bones(poses, joint_names)

    animations = []
    for anim in anims:
        cursor = anim.first_frame * header.num_framechannels
        frame_poses = []
        for _frame in range(anim.num_frames):
            local_pose = []
            for pose in poses:
                values, cursor = decode_pose_channels(pose, frame_data, cursor)
                local_pose.append(Transform.from_channels(values))
            frame_poses.append(compose_pose(bones, local_pose))

        animations.append(ModelAnimation(
            name=read_string(text, anim.name),
            bones=list(bones),
            frame_poses=frame_poses,
            framerate=anim.framerate,
            loop=bool(anim.flags & IQM_LOOP),
        ))

    log.debug(f"[IqmAnimation] Decoded {len(animations)} animations, {len(poses)} bones")
    return animations
