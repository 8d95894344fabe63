from rest_framework import serializers

from apps.chantiers.models import Chantier
from .models import ChantierNode, ChantierEdge, ChantierTemplate, ChantierLog


class ChantierNodeSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    action_display = serializers.CharField(source='get_action_type_display', read_only=True)

    class Meta:
        model = ChantierNode
        fields = [
            'id', 'chantier', 'type', 'action_type', 'action_display', 'label',
            'status', 'status_display', 'position_x', 'position_y', 'data', 'updated_at'
        ]
        read_only_fields = fields


class ChantierEdgeSerializer(serializers.ModelSerializer):

    class Meta:
        model = ChantierEdge
        fields = ['id', 'chantier', 'source', 'target']
        read_only_fields = fields


class ChantierLogSerializer(serializers.ModelSerializer):

    class Meta:
        model = ChantierLog
        fields = ['id', 'level', 'message', 'created_at']
        read_only_fields = ['id', 'created_at']


class ChantierTemplateSerializer(serializers.ModelSerializer):
    node_count = serializers.SerializerMethodField()

    class Meta:
        model = ChantierTemplate
        fields = ['id', 'name', 'description', 'nodes', 'edges', 'is_public', 'node_count', 'created_at']
        read_only_fields = fields

    def get_node_count(self, obj):
        return len(obj.nodes or [])


class OwnedChantierField(serializers.PrimaryKeyRelatedField):

    def get_queryset(self):
        request = self.context.get('request')
        if request is None:
            return Chantier.objects.none()
        return Chantier.objects.filter(created_by=request.user)


class OwnedNodeField(serializers.PrimaryKeyRelatedField):

    def get_queryset(self):
        request = self.context.get('request')
        if request is None:
            return ChantierNode.objects.none()
        return ChantierNode.objects.filter(chantier__created_by=request.user).select_related('chantier')


class NodeCreateSerializer(serializers.Serializer):
    chantier_id = OwnedChantierField(source='chantier')
    action_type = serializers.ChoiceField(choices=ChantierNode.ACTION_CHOICES)
    label = serializers.CharField(required=False, allow_blank=True, default='')
    position_x = serializers.FloatField(required=False, default=0)
    position_y = serializers.FloatField(required=False, default=0)
    data = serializers.DictField(required=False, default=dict)


class NodeUpdateSerializer(serializers.Serializer):
    label = serializers.CharField(required=False, allow_blank=True)
    position_x = serializers.FloatField(required=False)
    position_y = serializers.FloatField(required=False)
    data = serializers.DictField(required=False)


class NodeStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ChantierNode.STATUS_CHOICES)


class EdgeCreateSerializer(serializers.Serializer):
    source = OwnedNodeField()
    target = OwnedNodeField()


class TemplateNodeSerializer(serializers.Serializer):
    id = serializers.CharField()
    type = serializers.CharField(required=False, default='step')
    action_type = serializers.ChoiceField(choices=ChantierNode.ACTION_CHOICES)
    label = serializers.CharField(required=False, allow_blank=True, default='')
    status = serializers.CharField(required=False, default=ChantierNode.STATUS_PENDING)
    position_x = serializers.FloatField(required=False, default=0)
    position_y = serializers.FloatField(required=False, default=0)
    data = serializers.DictField(required=False, default=dict)


class TemplateEdgeSerializer(serializers.Serializer):
    id = serializers.CharField(required=False, allow_blank=True)
    source = serializers.CharField()
    target = serializers.CharField()


class TemplateSaveSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    nodes = TemplateNodeSerializer(many=True)
    edges = TemplateEdgeSerializer(many=True)

    def validate(self, attrs):
        node_ids = {node['id'] for node in attrs['nodes']}
        for edge in attrs['edges']:
            if edge['source'] not in node_ids or edge['target'] not in node_ids:
                raise serializers.ValidationError("Lien vers une étape inconnue", code="rejected")
        return attrs


class SnapshotTemplateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default='')


class LoadTemplateSerializer(serializers.Serializer):
    template_id = serializers.PrimaryKeyRelatedField(source='template', queryset=ChantierTemplate.objects.all())

    def validate_template_id(self, template):
        request = self.context.get('request')
        if not template.is_public and (request is None or template.created_by_id != request.user.pk):
            raise serializers.ValidationError("Modèle introuvable", code="rejected")
        return template


class LogCreateSerializer(serializers.Serializer):
    level = serializers.ChoiceField(choices=ChantierLog.LEVEL_CHOICES, default=ChantierLog.LEVEL_INFO)
    message = serializers.CharField()
