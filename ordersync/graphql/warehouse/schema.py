import graphene

from .mutations import InventoryPush


class WarehouseMutations(graphene.ObjectType):
    inventory_push = InventoryPush.Field()
